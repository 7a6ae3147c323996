import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def reconcile_company_stock(company_id, fix=False):
    # import lazily to avoid circular imports at module import time
    from .models import Company
    from .services.reconciliation import reconcile_stock

    company = Company.objects.get(pk=company_id)
    drifts = reconcile_stock(company, fix=fix)

    # Result must be JSON-serialisable for the result backend
    return [
        {
            "itemId": d.item_id,
            "name": d.name,
            "stock": d.stock,
            "expected": d.expected,
        }
        for d in drifts
    ]


@shared_task
def reconcile_all_stock(fix=False):
    """Fan out one reconciliation per company (e.g. from celery beat)."""
    from .models import Company

    ids = list(Company.objects.values_list("pk", flat=True))
    for company_id in ids:
        reconcile_company_stock.delay(company_id, fix=fix)
    logger.info("Queued stock reconciliation for %d companies", len(ids))
    return len(ids)
