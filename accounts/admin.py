"""
Admin configuration for accounts app
"""
from django import forms
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.forms import UserChangeForm, UserCreationForm

from students.models import TeacherProfile
from .models import User


def _validate_org_for_role(cleaned_data):
    """Finance data is organization-scoped; only admins may exist without one."""
    if cleaned_data.get('role') != User.ROLE_ADMIN and not cleaned_data.get('organization'):
        raise forms.ValidationError({'organization': 'Only admins may be created without an organization.'})


class UserChangeAdminForm(UserChangeForm):
    class Meta(UserChangeForm.Meta):
        model = User
        fields = '__all__'

    def clean(self):
        cleaned = super().clean()
        _validate_org_for_role(cleaned)
        return cleaned


class UserAddForm(UserCreationForm):
    class Meta(UserCreationForm.Meta):
        model = User
        fields = ('email', 'full_name', 'role', 'organization', 'phone')

    def clean(self):
        cleaned = super().clean()
        _validate_org_for_role(cleaned)
        return cleaned


class TeacherPayoutSettingsInline(admin.StackedInline):
    """Hourly rate and late-cancellation policy, edited on the teacher's user."""
    model = TeacherProfile
    can_delete = False
    verbose_name_plural = 'Payout settings'
    fields = (
        'hourly_rate',
        'cancellation_payout_enabled',
        'cancellation_payout_hours',
        'cancellation_payout_percent',
        'is_active',
    )


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    form = UserChangeAdminForm
    add_form = UserAddForm
    list_display = ['email', 'full_name', 'role', 'organization', 'finance_staff', 'is_active', 'date_joined']
    list_filter = ['role', 'is_active', 'organization']
    search_fields = ['email', 'full_name']
    ordering = ['-date_joined']
    readonly_fields = ['date_joined', 'updated_at', 'last_login']

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Personal Info', {'fields': ('full_name', 'role', 'organization', 'phone')}),
        ('Permissions', {'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Important dates', {'fields': ('last_login', 'date_joined', 'updated_at')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'full_name', 'role', 'organization', 'phone', 'password1', 'password2'),
        }),
    )

    @admin.display(boolean=True, description='Finance')
    def finance_staff(self, obj):
        return obj.is_finance_staff

    def get_inlines(self, request, obj):
        if obj is not None and obj.role == User.ROLE_TEACHER:
            return [TeacherPayoutSettingsInline]
        return []
