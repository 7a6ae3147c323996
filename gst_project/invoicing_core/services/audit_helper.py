from ..models import AuditLog


def log_action(scope, *, action: str, instance, changes: dict | None = None):
    """
    Record one audit row for `instance` under the scope's company/user.

    Call it inside the same atomic block as the change it describes,
    so a rolled back posting leaves no audit trace either.
    """
    user = scope.user
    if user is not None and not getattr(user, "is_authenticated", False):
        user = None

    return AuditLog.objects.create(
        company=scope.company,
        user=user,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
