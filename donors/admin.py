from django.contrib import admin

from .models import DonorProfile, DonorNotification, DonationHistory
from .utils import record_donation, restore_available_donors


@admin.register(DonorProfile)
class DonorProfileAdmin(admin.ModelAdmin):
    list_display   = ['full_name', 'blood_type', 'city', 'state', 'donation_count', 'is_available',
                      'available_for_emergency', 'can_donate_display']
    list_filter    = ['blood_type', 'state', 'is_available', 'available_for_emergency']
    search_fields  = ['full_name', 'phone', 'email', 'city']
    ordering       = ['-created_at']
    readonly_fields = ['donation_count', 'last_donation_date', 'on_cooldown', 'created_at', 'updated_at']

    fieldsets = (
        ('Personal Info', {
            'fields': ('full_name', 'age', 'blood_type')
        }),
        ('Contact', {
            'fields': ('phone', 'email', 'emergency_contact')
        }),
        ('Location', {
            'fields': ('address', 'city', 'state', 'pincode')
        }),
        ('Donation Stats', {
            'fields': ('donation_count', 'last_donation_date', 'is_available', 'on_cooldown',
                       'available_for_emergency')
        }),
        ('Health', {
            'fields': ('medical_conditions',),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    @admin.display(boolean=True, description='Can Donate Now')
    def can_donate_display(self, obj):
        return obj.can_donate

    actions = ['record_donation_today', 'restore_availability']

    @admin.action(description='Record a donation today for selected donors')
    def record_donation_today(self, request, queryset):
        for donor in queryset:
            record_donation(donor)
        self.message_user(request, f'Recorded a donation for {queryset.count()} donor(s).')

    @admin.action(description='Restore availability for selected donors past their cooldown')
    def restore_availability(self, request, queryset):
        updated = restore_available_donors(queryset=queryset)
        self.message_user(request, f'{updated} donor(s) available again.')

    def save_model(self, request, obj, form, change):
        if change and 'is_available' in form.changed_data:
            obj.on_cooldown = False
        super().save_model(request, obj, form, change)


@admin.register(DonorNotification)
class DonorNotificationAdmin(admin.ModelAdmin):
    list_display  = ['donor', 'emergency_request', 'status', 'is_read', 'notified_at', 'responded_at']
    list_filter   = ['status', 'is_read']
    search_fields = ['donor__full_name', 'emergency_request__hospital_name']
    ordering      = ['-sent_at']
    readonly_fields = ['sent_at', 'notified_at', 'responded_at']


@admin.register(DonationHistory)
class DonationHistoryAdmin(admin.ModelAdmin):
    list_display  = ['donor', 'hospital', 'date_donated', 'units_donated']
    list_filter   = ['date_donated']
    search_fields = ['donor__full_name', 'hospital__name']
    ordering      = ['-date_donated']
    readonly_fields = ['created_at']
