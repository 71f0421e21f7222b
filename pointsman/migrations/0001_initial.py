# Initial schema: customers, ledger, catalog, redemptions and purchases

import django.db.models.deletion
from django.db import migrations, models

TIER_CHOICES = [
    ("BRONZE", "Bronze"),
    ("SILVER", "Silver"),
    ("GOLD", "Gold"),
    ("PLATINUM", "Platinum"),
    ("DIAMOND", "Diamond"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "code",
                    models.CharField(
                        help_text="Unique customer code (e.g. CUST-001)",
                        max_length=50,
                        unique=True,
                        verbose_name="code",
                    ),
                ),
                ("first_name", models.CharField(max_length=100, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=100, verbose_name="last name")),
                ("email", models.EmailField(blank=True, db_index=True, max_length=254, verbose_name="email")),
                ("phone", models.CharField(blank=True, max_length=20, verbose_name="phone")),
                ("date_of_birth", models.DateField(blank=True, null=True, verbose_name="date of birth")),
                ("gender", models.CharField(blank=True, max_length=10, verbose_name="gender")),
                ("city", models.CharField(blank=True, max_length=100, verbose_name="city")),
                ("state", models.CharField(blank=True, max_length=50, verbose_name="state")),
                (
                    "tier",
                    models.CharField(choices=TIER_CHOICES, default="BRONZE", max_length=20, verbose_name="tier"),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("ACTIVE", "Active"),
                            ("INACTIVE", "Inactive"),
                            ("SUSPENDED", "Suspended"),
                            ("DELETED", "Deleted"),
                        ],
                        db_index=True,
                        default="ACTIVE",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("enrolled_at", models.DateTimeField(blank=True, null=True, verbose_name="enrolled at")),
                ("last_activity_date", models.DateField(blank=True, null=True, verbose_name="last activity")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "customer",
                "verbose_name_plural": "customers",
                "ordering": ["code"],
            },
        ),
        migrations.CreateModel(
            name="Promotion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=50, unique=True, verbose_name="code")),
                ("name", models.CharField(max_length=200, verbose_name="name")),
                ("description", models.TextField(blank=True, verbose_name="description")),
                (
                    "promotion_type",
                    models.CharField(
                        choices=[
                            ("DISCOUNT", "Discount"),
                            ("BONUS_POINTS", "Bonus points"),
                            ("DOUBLE_POINTS", "Double points"),
                            ("CASHBACK", "Cashback"),
                            ("BUY_ONE_GET_ONE", "Buy one get one"),
                            ("FREE_SHIPPING", "Free shipping"),
                            ("EARLY_ACCESS", "Early access"),
                            ("FLASH_SALE", "Flash sale"),
                            ("LOYALTY_BOOST", "Loyalty boost"),
                            ("TIER_BONUS", "Tier bonus"),
                        ],
                        default="BONUS_POINTS",
                        max_length=30,
                        verbose_name="type",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("DRAFT", "Draft"),
                            ("SCHEDULED", "Scheduled"),
                            ("ACTIVE", "Active"),
                            ("PAUSED", "Paused"),
                            ("EXPIRED", "Expired"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        db_index=True,
                        default="DRAFT",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("start_date", models.DateField(blank=True, null=True, verbose_name="start date")),
                ("end_date", models.DateField(blank=True, null=True, verbose_name="end date")),
                (
                    "bonus_points_multiplier",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=10,
                        null=True,
                        verbose_name="points multiplier",
                    ),
                ),
                ("bonus_points_fixed", models.IntegerField(blank=True, null=True, verbose_name="fixed bonus points")),
                (
                    "usage_limit",
                    models.PositiveIntegerField(default=0, help_text="0 = unlimited", verbose_name="usage limit"),
                ),
                ("usage_count", models.PositiveIntegerField(default=0, verbose_name="usage count")),
                (
                    "usage_limit_per_customer",
                    models.PositiveIntegerField(default=1, verbose_name="usage limit per customer"),
                ),
                (
                    "minimum_purchase_amount",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=12,
                        null=True,
                        verbose_name="minimum purchase",
                    ),
                ),
                (
                    "minimum_tier",
                    models.CharField(blank=True, choices=TIER_CHOICES, max_length=20, verbose_name="minimum tier"),
                ),
                ("minimum_age", models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="minimum age")),
                ("maximum_age", models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="maximum age")),
                ("target_gender", models.CharField(blank=True, max_length=100, verbose_name="target gender")),
                ("target_city", models.CharField(blank=True, max_length=100, verbose_name="target city")),
                ("target_state", models.CharField(blank=True, max_length=100, verbose_name="target state")),
                (
                    "exclusive_to_new_customers",
                    models.BooleanField(default=False, verbose_name="new customers only"),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("created_by", models.CharField(blank=True, max_length=100, verbose_name="created by")),
            ],
            options={
                "verbose_name": "promotion",
                "verbose_name_plural": "promotions",
                "ordering": ["id"],
                "indexes": [
                    models.Index(
                        fields=["status", "start_date", "end_date"],
                        name="pointsman_promo_window_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Reward",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=50, unique=True, verbose_name="code")),
                ("name", models.CharField(max_length=100, verbose_name="name")),
                ("description", models.TextField(blank=True, verbose_name="description")),
                (
                    "reward_type",
                    models.CharField(
                        choices=[
                            ("DISCOUNT", "Discount"),
                            ("FREE_PRODUCT", "Free product"),
                            ("CASHBACK", "Cashback"),
                            ("GIFT_CARD", "Gift card"),
                            ("EXPERIENCE", "Experience"),
                            ("MERCHANDISE", "Merchandise"),
                            ("VOUCHER", "Voucher"),
                        ],
                        default="DISCOUNT",
                        max_length=30,
                        verbose_name="type",
                    ),
                ),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("PRODUCT", "Product"),
                            ("SERVICE", "Service"),
                            ("EXPERIENCE", "Experience"),
                            ("GIFT", "Gift"),
                            ("TRAVEL", "Travel"),
                            ("ENTERTAINMENT", "Entertainment"),
                            ("FOOD_AND_BEVERAGE", "Food and beverage"),
                        ],
                        default="PRODUCT",
                        max_length=30,
                        verbose_name="category",
                    ),
                ),
                ("points_required", models.PositiveIntegerField(verbose_name="points required")),
                (
                    "cash_value",
                    models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name="cash value"),
                ),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Empty or 0 = unlimited",
                        null=True,
                        verbose_name="quantity",
                    ),
                ),
                ("quantity_redeemed", models.PositiveIntegerField(default=0, verbose_name="quantity redeemed")),
                ("quantity_per_customer", models.PositiveIntegerField(default=1, verbose_name="quantity per customer")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("ACTIVE", "Active"),
                            ("PAUSED", "Paused"),
                            ("INACTIVE", "Inactive"),
                            ("EXPIRED", "Expired"),
                            ("OUT_OF_STOCK", "Out of stock"),
                            ("ARCHIVED", "Archived"),
                        ],
                        db_index=True,
                        default="ACTIVE",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("start_date", models.DateField(blank=True, null=True, verbose_name="start date")),
                ("expiry_date", models.DateField(blank=True, null=True, verbose_name="expiry date")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "reward",
                "verbose_name_plural": "rewards",
                "ordering": ["points_required", "id"],
            },
        ),
        migrations.CreateModel(
            name="LedgerAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("points_earned", models.BigIntegerField(default=0, verbose_name="points earned")),
                ("points_redeemed", models.BigIntegerField(default=0, verbose_name="points redeemed")),
                ("points_expired", models.BigIntegerField(default=0, verbose_name="points expired")),
                (
                    "points_adjusted",
                    models.BigIntegerField(
                        default=0,
                        help_text="Sum of absolute adjustment amounts",
                        verbose_name="points adjusted",
                    ),
                ),
                (
                    "points_adjusted_net",
                    models.BigIntegerField(
                        default=0,
                        help_text="Signed sum of adjustments applied to the balance",
                        verbose_name="net adjustment",
                    ),
                ),
                ("current_balance", models.BigIntegerField(default=0, verbose_name="current balance")),
                (
                    "lifetime_points",
                    models.BigIntegerField(
                        default=0,
                        help_text="Total points ever earned (never decreases)",
                        verbose_name="lifetime points",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("ACTIVE", "Active"),
                            ("FROZEN", "Frozen"),
                            ("EXPIRED", "Expired"),
                            ("CLOSED", "Closed"),
                        ],
                        default="ACTIVE",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("last_earned_at", models.DateTimeField(blank=True, null=True, verbose_name="last earned at")),
                ("last_redeemed_at", models.DateTimeField(blank=True, null=True, verbose_name="last redeemed at")),
                ("last_adjusted_at", models.DateTimeField(blank=True, null=True, verbose_name="last adjusted at")),
                ("notes", models.TextField(blank=True, verbose_name="notes")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "customer",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_account",
                        to="pointsman.customer",
                        verbose_name="customer",
                    ),
                ),
            ],
            options={
                "verbose_name": "ledger account",
                "verbose_name_plural": "ledger accounts",
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "entry_type",
                    models.CharField(
                        choices=[
                            ("EARN", "Earn"),
                            ("REDEEM", "Redeem"),
                            ("ADJUST", "Adjust"),
                            ("EXPIRE", "Expire"),
                            ("REFUND", "Refund"),
                        ],
                        max_length=20,
                        verbose_name="type",
                    ),
                ),
                (
                    "points",
                    models.BigIntegerField(
                        help_text="Positive for credits, negative for debits",
                        verbose_name="points",
                    ),
                ),
                ("balance_after", models.BigIntegerField(verbose_name="balance after")),
                ("description", models.CharField(blank=True, max_length=200, verbose_name="description")),
                (
                    "reference",
                    models.CharField(
                        blank=True,
                        help_text="External reference (e.g. purchase:TXN-1, redemption:RDM-1)",
                        max_length=100,
                        verbose_name="reference",
                    ),
                ),
                ("created_at", models.DateTimeField(db_index=True, verbose_name="created at")),
                ("created_by", models.CharField(blank=True, max_length=100, verbose_name="created by")),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="entries",
                        to="pointsman.ledgeraccount",
                        verbose_name="account",
                    ),
                ),
            ],
            options={
                "verbose_name": "ledger entry",
                "verbose_name_plural": "ledger entries",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["account", "-created_at"],
                        name="pointsman_entry_account_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RedemptionLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=50, unique=True, verbose_name="redemption code")),
                ("voucher_code", models.CharField(blank=True, max_length=100, verbose_name="voucher code")),
                ("redemption_url", models.CharField(blank=True, max_length=255, verbose_name="redemption URL")),
                ("points_redeemed", models.PositiveIntegerField(verbose_name="points redeemed")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("COMPLETED", "Completed"),
                            ("USED", "Used"),
                            ("EXPIRED", "Expired"),
                            ("CANCELLED", "Cancelled"),
                            ("REFUNDED", "Refunded"),
                        ],
                        db_index=True,
                        default="PENDING",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                (
                    "channel",
                    models.CharField(
                        choices=[
                            ("ONLINE", "Online"),
                            ("IN_STORE", "In store"),
                            ("MOBILE_APP", "Mobile app"),
                            ("PHONE", "Phone"),
                            ("KIOSK", "Kiosk"),
                        ],
                        default="ONLINE",
                        max_length=30,
                        verbose_name="channel",
                    ),
                ),
                ("redeemed_at", models.DateTimeField(db_index=True, verbose_name="redeemed at")),
                ("expires_at", models.DateTimeField(blank=True, null=True, verbose_name="expires at")),
                ("used_at", models.DateTimeField(blank=True, null=True, verbose_name="used at")),
                ("cancelled_at", models.DateTimeField(blank=True, null=True, verbose_name="cancelled at")),
                ("store_code", models.CharField(blank=True, max_length=100, verbose_name="store code")),
                ("processed_by", models.CharField(blank=True, max_length=100, verbose_name="processed by")),
                ("notes", models.TextField(blank=True, verbose_name="notes")),
                ("cancellation_reason", models.TextField(blank=True, verbose_name="cancellation reason")),
                ("metadata", models.JSONField(blank=True, default=dict, verbose_name="metadata")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="redemptions",
                        to="pointsman.customer",
                        verbose_name="customer",
                    ),
                ),
                (
                    "reward",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="redemptions",
                        to="pointsman.reward",
                        verbose_name="reward",
                    ),
                ),
            ],
            options={
                "verbose_name": "redemption",
                "verbose_name_plural": "redemptions",
                "ordering": ["-redeemed_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["customer", "-redeemed_at"],
                        name="pointsman_rdm_customer_idx",
                    ),
                    models.Index(
                        fields=["status", "expires_at"],
                        name="pointsman_rdm_expiry_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseTransaction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=50, unique=True, verbose_name="code")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="amount")),
                (
                    "discount_applied",
                    models.DecimalField(decimal_places=2, default=0, max_digits=12, verbose_name="discount"),
                ),
                ("net_amount", models.DecimalField(decimal_places=2, max_digits=12, verbose_name="net amount")),
                ("base_points", models.BigIntegerField(default=0, verbose_name="base points")),
                ("points_earned", models.BigIntegerField(default=0, verbose_name="points earned")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("COMPLETED", "Completed"),
                            ("CANCELLED", "Cancelled"),
                            ("REFUNDED", "Refunded"),
                            ("VOIDED", "Voided"),
                        ],
                        default="COMPLETED",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("store_code", models.CharField(blank=True, max_length=100, verbose_name="store code")),
                (
                    "reference",
                    models.CharField(
                        blank=True,
                        help_text="External reference (e.g. receipt number)",
                        max_length=100,
                        verbose_name="reference",
                    ),
                ),
                ("transacted_at", models.DateTimeField(db_index=True, verbose_name="transacted at")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchases",
                        to="pointsman.customer",
                        verbose_name="customer",
                    ),
                ),
                (
                    "promotion",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchases",
                        to="pointsman.promotion",
                        verbose_name="applied promotion",
                    ),
                ),
            ],
            options={
                "verbose_name": "purchase",
                "verbose_name_plural": "purchases",
                "ordering": ["-transacted_at", "-id"],
            },
        ),
    ]
