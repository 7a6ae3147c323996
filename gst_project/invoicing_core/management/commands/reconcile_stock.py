"""
Compare each item's stock with what its posted lines imply.
Run: python manage.py reconcile_stock --company demo-company [--fix]
"""
from django.core.management.base import BaseCommand, CommandError

from invoicing_core.models import Company
from invoicing_core.services.reconciliation import reconcile_stock


class Command(BaseCommand):
    help = "Report (and optionally fix) items whose stock disagrees with their transactions."

    def add_arguments(self, parser):
        parser.add_argument(
            "--company", help="Company code; all companies when omitted."
        )
        parser.add_argument(
            "--fix",
            action="store_true",
            help="Rewrite drifted stock to the value derived from transactions.",
        )

    def handle(self, *args, **options):
        companies = Company.objects.order_by("code")
        if options["company"]:
            companies = companies.filter(code=options["company"])
            if not companies.exists():
                raise CommandError(f"Company '{options['company']}' not found.")

        for company in companies:
            self.stdout.write(f"=== Company: {company} ({company.code}) ===")
            drifts = reconcile_stock(company, fix=options["fix"])
            if not drifts:
                self.stdout.write(self.style.SUCCESS("  Stock matches the ledger."))
                continue

            for d in drifts:
                self.stdout.write(
                    self.style.WARNING(
                        f"  {d.name}: stock={d.stock} expected={d.expected} "
                        f"({d.difference:+d})"
                    )
                )
            if options["fix"]:
                self.stdout.write(self.style.SUCCESS(f"  Fixed {len(drifts)} item(s)."))
