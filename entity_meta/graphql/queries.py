"""GraphQL queries for entity models.

Exposes the entity model of a Django model to frontends through the
process-wide factory configured from settings.
"""

import logging
from typing import Optional

import graphene
from django.apps import apps
from graphql import GraphQLError

from ..exceptions import EntityModelError
from ..factory import get_default_factory
from .types import EntityModelType, serialize_entity_model

logger = logging.getLogger(__name__)


def _get_model_class(app_label: str, model_name: str):
    try:
        return apps.get_model(app_label, model_name)
    except LookupError:
        return None


class EntityModelQuery(graphene.ObjectType):
    """GraphQL queries for entity models."""

    entity_model = graphene.Field(
        EntityModelType,
        app_label=graphene.String(required=True, description="Django app label"),
        model_name=graphene.String(required=True, description="Model class name"),
        reference=graphene.String(description="Model reference (defaults to the class name)"),
        locale=graphene.String(description="Locale for display strings"),
        description="Get the entity model of a Django model",
    )

    entity_model_references = graphene.List(
        graphene.String,
        description="References of every entity model built so far.",
    )

    def resolve_entity_model(
        root,
        info,
        app_label: str,
        model_name: str,
        reference: Optional[str] = None,
        locale: Optional[str] = None,
    ):
        model_class = _get_model_class(app_label, model_name)
        if model_class is None:
            return None
        try:
            model = get_default_factory().get_model(reference or model_class.__name__, model_class)
        except EntityModelError as exc:
            logger.error("Entity model for %s.%s failed: %s", app_label, model_name, exc)
            raise GraphQLError(str(exc))
        return serialize_entity_model(model, locale)

    def resolve_entity_model_references(root, info):
        return sorted(get_default_factory().registry.references)
