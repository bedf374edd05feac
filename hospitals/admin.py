# hospitals/admin.py
from django.contrib import admin
from django.utils.html import format_html

from .models import Hospital, EmergencyRequest
from .utils import close_emergency_request, RequestClosed


@admin.register(EmergencyRequest)
class EmergencyRequestAdmin(admin.ModelAdmin):
    list_display = [
        'id',
        'hospital_name',
        'patient_name',
        'blood_type',
        'urgency_level',
        'status',
        'donor_count',
        'created_at',
    ]
    list_filter = ['status', 'urgency_level', 'blood_type', 'created_at']
    search_fields = ['patient_name', 'hospital_name', 'city', 'contact_person']
    readonly_fields = ['donors_notified', 'hospitals_notified', 'broadcast_at', 'created_at', 'updated_at']

    fieldsets = (
        ('Request Information', {
            'fields': ('patient_name', 'blood_type', 'units_needed', 'urgency_level',
                       'medical_condition', 'additional_notes', 'status')
        }),
        ('Hospital', {
            'fields': ('hospital', 'hospital_name', 'hospital_address', 'city')
        }),
        ('Contact', {
            'fields': ('contact_person', 'contact_phone')
        }),
        ('Broadcast', {
            'fields': ('donors_notified', 'hospitals_notified', 'broadcast_at'),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def donor_count(self, obj):
        notifications = obj.donor_notifications
        return format_html(
            '<span style="color: purple;">Notified: {}</span> | '
            '<span style="color: green;">Accepted: {}</span> | '
            '<span style="color: gray;">Cancelled: {}</span>',
            notifications.filter(status='notified').count(),
            notifications.filter(status='accepted').count(),
            notifications.filter(status='cancelled').count(),
        )
    donor_count.short_description = 'Donors'

    actions = ['mark_fulfilled', 'mark_cancelled']

    def _close_selected(self, request, queryset, status):
        closed = 0
        for emergency_request in queryset:
            try:
                close_emergency_request(emergency_request, status)
                closed += 1
            except RequestClosed:
                continue
        self.message_user(request, f"{closed} request(s) marked {status}.")

    @admin.action(description='Mark selected requests as fulfilled')
    def mark_fulfilled(self, request, queryset):
        self._close_selected(request, queryset, 'fulfilled')

    @admin.action(description='Cancel selected requests')
    def mark_cancelled(self, request, queryset):
        self._close_selected(request, queryset, 'cancelled')


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'address', 'is_active', 'total_requests']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'phone', 'address']

    def total_requests(self, obj):
        total = obj.emergency_requests.count()
        open_count = obj.emergency_requests.filter(status='open').count()
        fulfilled = obj.emergency_requests.filter(status='fulfilled').count()

        return format_html(
            'Total: {} | Open: {} | Fulfilled: {}',
            total, open_count, fulfilled
        )
