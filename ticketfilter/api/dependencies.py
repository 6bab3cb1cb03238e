"""
API Dependencies - Shared lookups and dependency injection.

Provides the kind registry, catalog translation and common lookups for
API endpoints.
"""

import gettext
from typing import Optional

from fastapi import HTTPException, Query, Request
from sqlalchemy.orm import Session

from ticketfilter.config import settings
from ticketfilter.domain.catalog import Translator
from ticketfilter.domain.registry import KindRegistry, build_default_registry
from ticketfilter.models import FilterRule, FilterRuleGroup
from ticketfilter.services import OperationResult

# gettext domain for kind display names
TRANSLATION_DOMAIN = "ticketfilter"


def get_registry(request: Request) -> KindRegistry:
    """
    FastAPI dependency returning the application's kind registry.

    Usage:
        @router.get("/items")
        def list_items(registry: KindRegistry = Depends(get_registry)):
            ...
    """
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        registry = build_default_registry()
        request.app.state.registry = registry
    return registry


def get_translator(
    locale: Optional[str] = Query(None, description="Locale for display names (e.g., 'de')")
) -> Translator:
    """
    FastAPI dependency returning a translator for the requested locale.

    Unknown locales, and names missing from a catalog, fall back to the
    untranslated name.
    """
    if not locale:
        return gettext.NullTranslations().gettext
    translation = gettext.translation(
        TRANSLATION_DOMAIN,
        localedir=str(settings.locale_dir),
        languages=[locale],
        fallback=True
    )
    return translation.gettext


def get_group_or_404(db: Session, group_id: int) -> FilterRuleGroup:
    group = db.query(FilterRuleGroup).filter(FilterRuleGroup.id == group_id).first()
    if not group:
        raise HTTPException(status_code=404, detail="Filter rule group not found")
    return group


def get_rule_or_404(db: Session, rule_id: int) -> FilterRule:
    rule = db.query(FilterRule).filter(FilterRule.id == rule_id).first()
    if not rule:
        raise HTTPException(status_code=404, detail="Filter rule not found")
    return rule


def check_result(result: OperationResult) -> OperationResult:
    """
    Raise 400 for a failed operation.

    Raises:
        HTTPException: If the operation was rejected
    """
    if not result.ok:
        raise HTTPException(status_code=400, detail=result.message)
    return result
