# =============================================================================
# Character Routes
# =============================================================================
#
# Endpoints:
#   GET    /characters      - List characters (any authenticated caller)
#   GET    /characters/:id  - Get one character
#   POST   /characters      - Create a character (admin, user)
#   PUT    /characters/:id  - Replace a character's fields (admin, user)
#   DELETE /characters/:id  - Delete a character (admin)
#
# =============================================================================

from __future__ import annotations

import logging

from lorekeeper.api.router import Call, Response, Router
from lorekeeper.core.errors import ResourceNotFound
from lorekeeper.core.models import Character, CharacterCreate, CharacterUpdate, Role
from lorekeeper.storage.base import ResourceStore

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Character not found"


def parse_id(call: Call) -> int:
    """Path ids that aren't integers can't name a character."""
    try:
        return int(call.params["id"])
    except (KeyError, ValueError) as e:
        raise ResourceNotFound(NOT_FOUND_MESSAGE) from e


def register_character_routes(router: Router, store: ResourceStore[Character]) -> None:
    """Bind the character handlers to a store and register them."""
    
    def list_characters(call: Call) -> Response:
        return Response(200, [c.to_json() for c in store.list()])
    
    def get_character(call: Call) -> Response:
        return Response(200, store.get(parse_id(call)).to_json())
    
    def create_character(call: Call) -> Response:
        character = store.create(call.payload)
        logger.info("Character %s created by %s", character.id, call.identity.subject)
        return Response(201, character.to_json())
    
    def update_character(call: Call) -> Response:
        character = store.update(parse_id(call), call.payload)
        return Response(200, character.to_json())
    
    def delete_character(call: Call) -> Response:
        character_id = parse_id(call)
        store.delete(character_id)
        logger.info("Character %s deleted by %s", character_id, call.identity.subject)
        return Response(204)
    
    router.add("GET", "/characters", list_characters)
    router.add("GET", "/characters/:id", get_character)
    router.add(
        "POST", "/characters", create_character,
        roles={Role.ADMIN, Role.USER},
        shape=CharacterCreate,
    )
    router.add(
        "PUT", "/characters/:id", update_character,
        roles={Role.ADMIN, Role.USER},
        shape=CharacterUpdate,
    )
    router.add("DELETE", "/characters/:id", delete_character, roles={Role.ADMIN})
