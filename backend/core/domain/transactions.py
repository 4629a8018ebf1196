"""
core.domain.transactions — Helpers for safe state transitions.

Wraps ``transaction.atomic`` and ``select_for_update`` into reusable
patterns so that every state-changing service method reads the row it
is about to mutate under a lock.

Usage::

    from core.domain.transactions import atomic_transition

    report = atomic_transition(
        instance=report,
        target_status=ReportStatus.REJECTED,
        allowed_sources={ReportStatus.PENDING_APPROVAL},
        changes={"status_reason": reason, "updated_by": actor},
    )
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, TypeVar

from django.db import models, transaction

from core.domain.exceptions import InvalidTransition, NotFound

M = TypeVar("M", bound=models.Model)


def lock_for_update(model_class: type[M], pk: Any, *, label: str | None = None) -> M:
    """
    Fetch a single row with ``select_for_update()``.

    Must be called inside an active ``transaction.atomic`` block.

    Raises:
        NotFound: If no row with ``pk`` exists.  ``label`` (default: the
            model name) is used in the message.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except model_class.DoesNotExist:
        name = label or model_class._meta.verbose_name
        raise NotFound(f"The {name} does not exist.")


def atomic_transition(
    *,
    instance: M,
    status_field: str = "status",
    target_status: str,
    allowed_sources: Iterable[str],
    changes: dict[str, Any] | Callable[[M], dict[str, Any]] | None = None,
    guard: Callable[[M], None] | None = None,
) -> M:
    """
    Atomically move a model instance to ``target_status``.

    Steps performed inside ``transaction.atomic()``:
        1. Re-fetch the instance with ``select_for_update()``.
        2. Verify the current status is in ``allowed_sources``; raise
           ``InvalidTransition`` otherwise.
        3. Run ``guard(locked)`` for checks that depend on the locked row
           (e.g. ownership).  The guard raises to abort.
        4. Apply ``changes`` (calling it first with the locked row when it
           is a callable) and the new status, then save.

    Args:
        instance:        The model instance to transition.
        status_field:    Name of the status field.  Defaults to ``"status"``.
        target_status:   The desired new value.
        allowed_sources: Status values from which the move is permitted.
        changes:         Extra ``field -> value`` assignments saved together
                         with the status, or a callable building them
                         from the locked row.
        guard:           Optional callable run after the source-state check.

    Returns:
        The locked, updated instance.

    Raises:
        NotFound:          If the instance no longer exists.
        InvalidTransition: If the current status is not an allowed source.
    """
    model_class = type(instance)
    allowed = {str(source) for source in allowed_sources}

    with transaction.atomic():
        locked = lock_for_update(model_class, instance.pk)
        current = str(getattr(locked, status_field))

        if current not in allowed:
            raise InvalidTransition(current=current, target=str(target_status))

        if guard is not None:
            guard(locked)

        update_fields = {status_field, "updated_at"}
        if callable(changes):
            changes = changes(locked)
        for name, value in (changes or {}).items():
            setattr(locked, name, value)
            update_fields.add(name)
        setattr(locked, status_field, target_status)

        locked.save(update_fields=list(update_fields))

    return locked
