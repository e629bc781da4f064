"""
Admin configuration for reports models.

Design principles:
- READ-ONLY for report content (citizen submissions)
- Status history is append-only and never editable
- Status changes only through admin ACTIONS that call ReportWorkflowService,
  so history and analytics cache stay consistent
"""

from django.contrib import admin
from django.contrib import messages

from core.exceptions import CleanCityAPIException
from .models import Report, ReportStatus, ReportStatusHistory
from .services import ReportWorkflowService


class ReportStatusHistoryInline(admin.TabularInline):
    """Read-only transition log shown on the report page."""

    model = ReportStatusHistory
    fk_name = 'report'
    extra = 0
    can_delete = False
    ordering = ['timestamp', 'created_at']
    fields = ['timestamp', 'from_status', 'to_status', 'actor', 'actor_role', 'rejection_message']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


# =============================================================================
# REPORT ADMIN
# =============================================================================

@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    """
    Admin for Report model.

    Fields are read-only; use the actions to move reports through the
    workflow.
    """

    list_display = [
        'short_id',
        'category',
        'status',
        'assigned_driver_display',
        'has_location_display',
        'created_at',
    ]
    list_filter = ['status', 'category', 'created_at']
    search_fields = ['id', 'address', 'description', 'submitted_by__identifier']
    ordering = ['-created_at']
    inlines = [ReportStatusHistoryInline]
    actions = ['mark_resolved', 'mark_completed']

    readonly_fields = [
        'id', 'submitted_by', 'category', 'address', 'description',
        'latitude', 'longitude', 'status', 'assigned_driver',
        'rejection_message', 'created_at', 'updated_at',
    ]

    fieldsets = (
        ('Identification', {
            'fields': ('id', 'status', 'assigned_driver'),
        }),
        ('Submission', {
            'fields': ('submitted_by', 'category', 'address', 'description'),
        }),
        ('Location', {
            'fields': ('latitude', 'longitude'),
            'classes': ('collapse',),
        }),
        ('Rejection', {
            'fields': ('rejection_message',),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    # === Display helpers ===

    def short_id(self, obj):
        """Display shortened UUID."""
        return str(obj.id)[:8] + '...'
    short_id.short_description = 'ID'
    short_id.admin_order_field = 'id'

    def assigned_driver_display(self, obj):
        if obj.assigned_driver:
            return obj.assigned_driver.identifier
        return '-'
    assigned_driver_display.short_description = 'Driver'
    assigned_driver_display.admin_order_field = 'assigned_driver__identifier'

    def has_location_display(self, obj):
        return obj.has_location
    has_location_display.boolean = True
    has_location_display.short_description = 'Has Location'

    # === Actions ===

    def _bulk_transition(self, request, queryset, to_status):
        moved = 0
        skipped = 0

        for report in queryset:
            if not ReportStatus.can_transition(report.status, to_status):
                skipped += 1
                continue
            try:
                ReportWorkflowService.transition(report, to_status, actor=request.user)
            except CleanCityAPIException:
                skipped += 1
                continue
            moved += 1

        if moved:
            self.message_user(
                request,
                f"Moved {moved} report(s) to {to_status}.",
                messages.SUCCESS
            )
        if skipped:
            self.message_user(
                request,
                f"Skipped {skipped} report(s) that cannot move to {to_status}.",
                messages.WARNING
            )

    @admin.action(description="Mark as Resolved")
    def mark_resolved(self, request, queryset):
        self._bulk_transition(request, queryset, ReportStatus.RESOLVED)

    @admin.action(description="Mark as Completed")
    def mark_completed(self, request, queryset):
        self._bulk_transition(request, queryset, ReportStatus.COMPLETED)


# =============================================================================
# STATUS HISTORY ADMIN (READ-ONLY)
# =============================================================================

@admin.register(ReportStatusHistory)
class ReportStatusHistoryAdmin(admin.ModelAdmin):
    """Append-only log; browsing and searching only."""

    list_display = ['report', 'from_status', 'to_status', 'actor_role', 'timestamp']
    list_filter = ['to_status', 'actor_role', 'timestamp']
    search_fields = ['report__id', 'actor__identifier']
    ordering = ['-timestamp']
    readonly_fields = [
        'id', 'report', 'from_status', 'to_status', 'timestamp',
        'actor', 'actor_role', 'rejection_message', 'created_at', 'updated_at',
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
