from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils.text import slugify

from invoicing_core.domain import LineRequest, TransactionDetails, TransactionRequest
from invoicing_core.models import Company, EntityMembership, Item, Party
from invoicing_core.scope import CompanyScope
from invoicing_core.services import create_transaction, next_number

User = get_user_model()


class Command(BaseCommand):
    help = (
        "Create a demo tenant (company), user, parties, items and a sample sale for testing."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--company-name",  # Define flag
            default="Demo Company",
            help="Name of the demo company to create.",
        )
        parser.add_argument(
            "--state-code", default="27", help="GST state code of the company."
        )
        parser.add_argument(
            "--username", default="demo", help="Username for the demo user."
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo user."
        )

    @transaction.atomic
    def handle(self, *args, **options):
        # Read arguments from add_arguments()
        company_name = options["company_name"]
        state_code = options["state_code"]
        username = options["username"]
        password = options["password"]

        # 1. Create company
        # get_or_create returns (object, created)
        company, created = Company.objects.get_or_create(
            code=slugify(company_name) or "company",
            defaults={"name": company_name, "state_code": state_code},
        )
        self.stdout.write(self.style.SUCCESS(f"Company: {company} ({company.code})"))

        # 2. Create user + default membership
        user, user_created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@example.com"},
        )
        if user_created:  # if user newly created
            user.set_password(password)
            user.save()
        EntityMembership.objects.get_or_create(
            user=user,
            company=company,
            defaults={
                "role": "owner",
                # first company of the user becomes the default
                "is_default": not user.memberships.filter(is_default=True).exists(),
            },
        )
        self.stdout.write(
            self.style.SUCCESS(f"User: {user.username} (pw={password})")
        )

        if not created:
            self.stdout.write("Company already existed; sample data left as is.")
            return

        # 3. Parties: one in the same state, one outside it
        local = Party.objects.create(
            company=company, name="Local Traders", party_type="customer",
            gstin=f"{state_code}AAAAA0000A1Z5",
        )
        Party.objects.create(
            company=company, name="Delhi Supplies", party_type="supplier",
            gstin="07BBBBB1111B1Z5",
        )
        self.stdout.write(self.style.SUCCESS("Created parties"))

        # 4. Items
        pen = Item.objects.create(
            company=company, name="Pen", unit="pcs", hsn_code="9608",
            sale_price=Decimal("10.00"), purchase_price=Decimal("6.00"),
            gst_rate=Decimal("18"), opening_stock=100, stock=100,
        )
        Item.objects.create(
            company=company, name="Notebook", unit="pcs", hsn_code="4820",
            sale_price=Decimal("50.00"), purchase_price=Decimal("35.00"),
            gst_rate=Decimal("12"), opening_stock=40, stock=40,
        )
        self.stdout.write(self.style.SUCCESS("Created items (Pen, Notebook)"))

        # 5. A sample sale, posted through the engine
        scope = CompanyScope(company=company, user=user)
        sale = create_transaction(
            scope,
            TransactionRequest(
                transaction_type="sale",
                party_id=local.pk,
                details=TransactionDetails(
                    transaction_number=str(next_number(scope, "sale")),
                    subtotal=Decimal("100.00"),
                    total_amount=Decimal("118.00"),
                    balance_due=Decimal("118.00"),
                ),
                lines=[LineRequest(item_id=pen.pk, quantity=10, rate=Decimal("10.00"))],
            ),
        )
        self.stdout.write(
            self.style.SUCCESS(f"Created sale {sale.transaction_number}")
        )
        self.stdout.write(self.style.SUCCESS("Demo tenant setup complete!"))
