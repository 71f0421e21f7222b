"""Pointsman admin.

Ledger entries and redemption logs are append-only: they are written by
the services and cannot be added or deleted here.
"""

from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from pointsman.models import (
    Customer,
    LedgerAccount,
    LedgerEntry,
    Promotion,
    PurchaseTransaction,
    RedemptionLog,
    RedemptionStatus,
    Reward,
    Tier,
)


_TIER_COLORS = {
    Tier.BRONZE: "#cd7f32",
    Tier.SILVER: "#c0c0c0",
    Tier.GOLD: "#ffd700",
    Tier.PLATINUM: "#e5e4e2",
    Tier.DIAMOND: "#b9f2ff",
}

_REDEMPTION_COLORS = {
    RedemptionStatus.PENDING: "#6c757d",
    RedemptionStatus.COMPLETED: "#198754",
    RedemptionStatus.USED: "#0d6efd",
    RedemptionStatus.EXPIRED: "#fd7e14",
    RedemptionStatus.CANCELLED: "#dc3545",
    RedemptionStatus.REFUNDED: "#6f42c1",
}


def _badge(color: str, text_color: str, label) -> str:
    return format_html(
        '<span style="background:{}; color:{}; padding:2px 8px; '
        'border-radius:3px; font-size:11px;">{}</span>',
        color,
        text_color,
        label,
    )


def _customer_link(customer: Customer) -> str:
    url = reverse("admin:pointsman_customer_change", args=[customer.pk])
    return format_html('<a href="{}">{}</a>', url, customer.code)


# ===========================================
# Customer Admin
# ===========================================


class LedgerAccountInline(admin.StackedInline):
    model = LedgerAccount
    extra = 0
    can_delete = False
    fields = ["status", "current_balance", "lifetime_points", "points_expired", "notes"]
    readonly_fields = ["current_balance", "lifetime_points", "points_expired"]


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "tier_badge", "status", "city", "enrolled_at"]
    list_filter = ["tier", "status", "state"]
    search_fields = ["code", "first_name", "last_name", "email", "phone"]
    readonly_fields = ["enrolled_at", "last_activity_date", "created_at", "updated_at"]
    inlines = [LedgerAccountInline]

    fieldsets = [
        ("Identification", {"fields": ["code", "first_name", "last_name"]}),
        ("Contact", {"fields": ["email", "phone"]}),
        ("Targeting", {"fields": ["date_of_birth", "gender", "city", "state"]}),
        ("Program", {"fields": ["tier", "status", "enrolled_at", "last_activity_date"]}),
        ("Timestamps", {"fields": ["created_at", "updated_at"], "classes": ["collapse"]}),
    ]

    def tier_badge(self, obj):
        text_color = "#000" if obj.tier != Tier.BRONZE else "#fff"
        return _badge(_TIER_COLORS.get(obj.tier, "#6c757d"), text_color, obj.get_tier_display())

    tier_badge.short_description = "Tier"


# ===========================================
# Ledger Admin
# ===========================================


class LedgerEntryInline(admin.TabularInline):
    model = LedgerEntry
    extra = 0
    readonly_fields = ["entry_type", "points", "balance_after", "description", "reference", "created_at"]
    ordering = ["-created_at", "-id"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(LedgerAccount)
class LedgerAccountAdmin(admin.ModelAdmin):
    list_display = [
        "customer_link",
        "balance_display",
        "available_balance",
        "lifetime_points",
        "status",
        "updated_at",
    ]
    list_filter = ["status"]
    search_fields = ["customer__code", "customer__first_name"]
    raw_id_fields = ["customer"]
    readonly_fields = [
        "points_earned",
        "points_redeemed",
        "points_expired",
        "points_adjusted",
        "points_adjusted_net",
        "current_balance",
        "lifetime_points",
        "last_earned_at",
        "last_redeemed_at",
        "last_adjusted_at",
        "created_at",
        "updated_at",
    ]
    inlines = [LedgerEntryInline]

    def has_delete_permission(self, request, obj=None):
        return False

    def customer_link(self, obj):
        return _customer_link(obj.customer)

    customer_link.short_description = "Customer"

    def balance_display(self, obj):
        color = "green" if obj.current_balance > 0 else "gray"
        return format_html('<span style="color:{}">{}</span>', color, obj.current_balance)

    balance_display.short_description = "Balance"


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    list_display = [
        "created_at",
        "customer_code",
        "entry_type",
        "points_display",
        "balance_after",
        "description",
    ]
    list_filter = ["entry_type"]
    search_fields = ["account__customer__code", "description", "reference"]
    readonly_fields = [
        "account",
        "entry_type",
        "points",
        "balance_after",
        "description",
        "reference",
        "created_at",
        "created_by",
    ]
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def customer_code(self, obj):
        return obj.account.customer.code

    customer_code.short_description = "Customer"

    def points_display(self, obj):
        if obj.points > 0:
            return format_html('<span style="color:green">+{}</span>', obj.points)
        return format_html('<span style="color:red">{}</span>', obj.points)

    points_display.short_description = "Points"


# ===========================================
# Catalog Admin
# ===========================================


@admin.register(Promotion)
class PromotionAdmin(admin.ModelAdmin):
    list_display = [
        "code",
        "name",
        "promotion_type",
        "status",
        "start_date",
        "end_date",
        "bonus_points_multiplier",
        "bonus_points_fixed",
        "usage_display",
    ]
    list_filter = ["status", "promotion_type", "minimum_tier"]
    search_fields = ["code", "name"]
    readonly_fields = ["usage_count", "created_at", "updated_at"]
    ordering = ["id"]

    fieldsets = [
        (None, {"fields": ["code", "name", "description", "promotion_type", "status"]}),
        ("Validity", {"fields": ["start_date", "end_date"]}),
        ("Bonus", {"fields": ["bonus_points_multiplier", "bonus_points_fixed"]}),
        ("Usage", {"fields": ["usage_limit", "usage_count", "usage_limit_per_customer"]}),
        (
            "Targeting",
            {
                "fields": [
                    "minimum_purchase_amount",
                    "minimum_tier",
                    "minimum_age",
                    "maximum_age",
                    "target_gender",
                    "target_city",
                    "target_state",
                    "exclusive_to_new_customers",
                ]
            },
        ),
        ("System", {"fields": ["created_by", "created_at", "updated_at"], "classes": ["collapse"]}),
    ]

    def usage_display(self, obj):
        if not obj.usage_limit:
            return f"{obj.usage_count}/∞"
        return f"{obj.usage_count}/{obj.usage_limit}"

    usage_display.short_description = "Usage"


@admin.register(Reward)
class RewardAdmin(admin.ModelAdmin):
    list_display = [
        "code",
        "name",
        "points_required",
        "category",
        "status",
        "stock_display",
        "expiry_date",
    ]
    list_filter = ["status", "reward_type", "category"]
    search_fields = ["code", "name"]
    readonly_fields = ["quantity_redeemed", "created_at", "updated_at"]

    def stock_display(self, obj):
        if obj.is_unlimited:
            return format_html('<span style="color:gray">{}</span>', "unlimited")
        color = "green" if obj.remaining_quantity > 0 else "red"
        return format_html(
            '<span style="color:{}">{}/{}</span>',
            color,
            obj.remaining_quantity,
            obj.quantity,
        )

    stock_display.short_description = "Stock"


# ===========================================
# Activity Admin
# ===========================================


@admin.register(RedemptionLog)
class RedemptionLogAdmin(admin.ModelAdmin):
    list_display = [
        "code",
        "customer_link",
        "reward",
        "points_redeemed",
        "status_badge",
        "channel",
        "redeemed_at",
        "expires_at",
    ]
    list_filter = ["status", "channel"]
    search_fields = ["code", "voucher_code", "customer__code", "reward__code"]
    raw_id_fields = ["customer", "reward"]
    readonly_fields = [
        "code",
        "voucher_code",
        "customer",
        "reward",
        "points_redeemed",
        "status",
        "channel",
        "redeemed_at",
        "expires_at",
        "used_at",
        "cancelled_at",
        "cancellation_reason",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "redeemed_at"

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def customer_link(self, obj):
        return _customer_link(obj.customer)

    customer_link.short_description = "Customer"

    def status_badge(self, obj):
        return _badge(
            _REDEMPTION_COLORS.get(obj.status, "#6c757d"), "#fff", obj.get_status_display(),
        )

    status_badge.short_description = "Status"


@admin.register(PurchaseTransaction)
class PurchaseTransactionAdmin(admin.ModelAdmin):
    list_display = [
        "code",
        "customer_link",
        "net_amount",
        "points_earned",
        "promotion",
        "status",
        "transacted_at",
    ]
    list_filter = ["status"]
    search_fields = ["code", "reference", "customer__code"]
    raw_id_fields = ["customer", "promotion"]
    readonly_fields = ["base_points", "points_earned", "created_at"]
    date_hierarchy = "transacted_at"

    def has_delete_permission(self, request, obj=None):
        return False

    def customer_link(self, obj):
        return _customer_link(obj.customer)

    customer_link.short_description = "Customer"
