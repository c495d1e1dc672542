"""Service / helper functions for the stores app."""
from __future__ import annotations

import uuid
from collections.abc import Iterable

from django.db.models import Count

from stores.models import StoreUser


def headcounts_for(store_ids: Iterable) -> dict:
    """Return ``{store_id: active non-admin member count}`` for the given stores.

    Stores without any member are present with a count of 0.
    """
    from accounts.models import User

    store_ids = list(store_ids)
    counts = {store_id: 0 for store_id in store_ids}
    if not store_ids:
        return counts

    rows = (
        StoreUser.objects.filter(store_id__in=store_ids, user__is_active=True)
        .exclude(user__role=User.Role.ADMIN)
        .values("store_id")
        .annotate(total=Count("user_id", distinct=True))
    )
    for row in rows:
        counts[row["store_id"]] = row["total"]
    return counts


def parse_id_list(raw) -> list[str]:
    """Split a ``"1, 2,3"`` query value (or a list of them) into clean ids."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = [raw]
    ids = []
    for chunk in raw:
        for part in str(chunk).split(","):
            part = part.strip()
            if part:
                ids.append(part)
    return ids


def parse_uuid_list(raw) -> list[uuid.UUID]:
    """Like :func:`parse_id_list`, for primary keys. Raises ``ValueError`` on a non-UUID id."""
    ids = []
    for part in parse_id_list(raw):
        try:
            ids.append(uuid.UUID(part))
        except ValueError:
            raise ValueError(f"Identifiant invalide : {part!r}.") from None
    return ids
