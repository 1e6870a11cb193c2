"""Playground API endpoints: the cosmos/world/era/setting tree and toolbox links.

Every route requires a world-builder-capable session. Nodes owned by other
users are reported as NOT_FOUND unless the requester is an admin.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..core.auth import SessionUser, require_world_builder
from ..database import get_db
from ..exceptions import ValidationError
from ..schemas.playground import (
    NodeCreate,
    NodeEnvelope,
    NodeResponse,
    NodeUpdate,
    PlaygroundTree,
    ToolboxLinksEnvelope,
    ToolboxLinksUpdate,
)
from ..services.playground_service import PlaygroundService

router = APIRouter(prefix="/api/worldbuilder/playground", tags=["Playground"])


def get_playground_service(db: Session = Depends(get_db)) -> PlaygroundService:
    return PlaygroundService(db)


@router.post(
    "/node",
    response_model=NodeEnvelope,
    status_code=201,
    summary="Create a node",
    description="Creates a node under `parentId`, or a root cosmos when `parentId` is absent. "
                "The new node is placed after its existing siblings.",
)
def create_node(
    body: NodeCreate,
    user: SessionUser = Depends(require_world_builder),
    service: PlaygroundService = Depends(get_playground_service),
):
    node = service.create_node(user, body.type, body.name, body.parent_id)
    return NodeEnvelope(node=NodeResponse.model_validate(node))


@router.get("/tree", response_model=PlaygroundTree, summary="Get the visible playground tree")
def get_tree(
    user: SessionUser = Depends(require_world_builder),
    service: PlaygroundService = Depends(get_playground_service),
):
    return service.get_tree(user)


@router.get("/node/{node_id}", response_model=NodeEnvelope, summary="Get a node")
def get_node(
    node_id: str,
    user: SessionUser = Depends(require_world_builder),
    service: PlaygroundService = Depends(get_playground_service),
):
    return NodeEnvelope(node=NodeResponse.model_validate(service.get_node(user, node_id)))


@router.put(
    "/node/{node_id}",
    response_model=NodeEnvelope,
    summary="Update a node",
    description="Partial update; only fields present in the body change. Type and parent are fixed.",
)
def update_node(
    node_id: str,
    body: NodeUpdate,
    user: SessionUser = Depends(require_world_builder),
    service: PlaygroundService = Depends(get_playground_service),
):
    node = service.update_node(user, node_id, body.model_dump(exclude_unset=True))
    return NodeEnvelope(node=NodeResponse.model_validate(node))


@router.delete("/node/{node_id}", status_code=204, summary="Delete a node and its subtree")
def delete_node(
    node_id: str,
    user: SessionUser = Depends(require_world_builder),
    service: PlaygroundService = Depends(get_playground_service),
):
    service.delete_node(user, node_id)
    return Response(status_code=204)


@router.get(
    "/node/{node_id}/toolbox-links",
    response_model=ToolboxLinksEnvelope,
    summary="Get toolbox links of a setting node",
)
def get_toolbox_links(
    node_id: str,
    user: SessionUser = Depends(require_world_builder),
    service: PlaygroundService = Depends(get_playground_service),
):
    return ToolboxLinksEnvelope(links=service.get_links(user, node_id))


@router.put(
    "/node/{node_id}/toolbox-links",
    response_model=ToolboxLinksEnvelope,
    summary="Replace toolbox links of a setting node",
)
def set_toolbox_links(
    node_id: str,
    body: ToolboxLinksUpdate,
    user: SessionUser = Depends(require_world_builder),
    service: PlaygroundService = Depends(get_playground_service),
):
    if "links" not in body.model_fields_set:
        raise ValidationError("Request body must include links", field="links")
    return ToolboxLinksEnvelope(links=service.set_links(user, node_id, body.links))
