"""Authorization and article visibility rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from app.errors import forbidden_error, not_found_error
from app.schemas.auth import AuthPrincipal, Role

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    ALLOW = "ALLOW"
    DENY = "DENY"


class ArticleAction(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LIST_ALL = "list_all"
    LIST_OWN = "list_own"


REGISTRATION_ROLE = Role.EDITOR

_USER_ADMIN_ROLES: frozenset[Role] = frozenset({Role.ADMIN})
_ARTICLE_OVERRIDE_ROLES: frozenset[Role] = frozenset({Role.ADMIN})
_OWNER_OR_OVERRIDE_ACTIONS: frozenset[ArticleAction] = frozenset({ArticleAction.UPDATE, ArticleAction.DELETE})


@dataclass(frozen=True, slots=True)
class ArticleFilter:
    """Store query filter; ``None`` means the criterion is not applied."""

    published: bool | None = None
    author_id: str | None = None
    tag: str | None = None
    search: str | None = None


def is_owner(principal: AuthPrincipal, author_id: object) -> bool:
    return str(author_id) == str(principal.user_id)


def decide_article_action(
    principal: AuthPrincipal | None,
    action: ArticleAction,
    *,
    author_id: str | None = None,
    published: bool | None = None,
) -> Decision:
    """Return the decision for ``principal`` performing ``action`` on an article.

    Reads are evaluated for the public view: an unpublished article is denied to
    everyone, its author included. Owners reach their drafts through
    ``LIST_OWN`` instead.
    """
    if action is ArticleAction.READ:
        return Decision.ALLOW if published else Decision.DENY
    if action is ArticleAction.LIST_ALL:
        return Decision.ALLOW

    if principal is None:
        return Decision.DENY
    if action in (ArticleAction.CREATE, ArticleAction.LIST_OWN):
        return Decision.ALLOW
    if action in _OWNER_OR_OVERRIDE_ACTIONS:
        if principal.role in _ARTICLE_OVERRIDE_ROLES or is_owner(principal, author_id):
            return Decision.ALLOW
    return Decision.DENY


def decide_list_users(principal: AuthPrincipal) -> Decision:
    return Decision.ALLOW if principal.role in _USER_ADMIN_ROLES else Decision.DENY


def ensure_can_mutate_article(principal: AuthPrincipal, action: ArticleAction, *, author_id: str) -> None:
    """Raise 403 unless the principal authored the article or holds an override role."""
    decision = decide_article_action(principal, action, author_id=author_id)
    if decision is Decision.DENY:
        logger.info("policy.denied action=%s role=%s", action.value, principal.role.value)
        raise forbidden_error(f"Not allowed to {action.value} this article")


def ensure_publicly_visible(published: bool) -> None:
    """Hidden articles share the not-found shape so drafts never leak."""
    if decide_article_action(None, ArticleAction.READ, published=published) is Decision.DENY:
        raise not_found_error()


def ensure_can_list_users(principal: AuthPrincipal) -> None:
    if decide_list_users(principal) is Decision.DENY:
        logger.info("policy.denied action=list_users role=%s", principal.role.value)
        raise forbidden_error("Access restricted to administrators")


def public_article_filter(*, tag: str | None = None, search: str | None = None) -> ArticleFilter:
    return ArticleFilter(published=True, tag=tag or None, search=search or None)


def own_article_filter(
    principal: AuthPrincipal,
    *,
    tag: str | None = None,
    search: str | None = None,
) -> ArticleFilter:
    return ArticleFilter(author_id=principal.user_id, tag=tag or None, search=search or None)
