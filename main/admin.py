from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _
from django.urls import reverse
from django import forms
from django.contrib.auth.hashers import make_password
from unfold.admin import ModelAdmin
from unfold.decorators import display
from unfold.contrib.filters.admin import RangeDateTimeFilter
from .models import User, Session


class UserAdminForm(forms.ModelForm):
    """User form that hashes the password and keeps it when left blank"""
    password = forms.CharField(
        label=_("Password"),
        widget=forms.PasswordInput(attrs={'placeholder': 'Enter password'}),
        help_text=_("Enter a strong password. It will be securely hashed."),
        required=False,
    )

    class Meta:
        model = User
        fields = '__all__'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance and self.instance.pk:
            self.fields['password'].help_text = _(
                "Leave blank to keep the current password. Enter a new password to change it."
            )
            self.fields['password'].widget.attrs['placeholder'] = 'Leave blank to keep current password'
        else:
            self.fields['password'].required = True

    def clean_password(self):
        password = self.cleaned_data.get('password')

        if self.instance.pk and not password:
            return None

        if password and len(password) < 4:
            raise forms.ValidationError(_("Password must be at least 4 characters long."))

        return password

    def save(self, commit=True):
        user = super().save(commit=False)

        password = self.cleaned_data.get('password')
        if password:
            user.password = make_password(password)
        elif user.pk:
            user.password = User.objects.filter(pk=user.pk).values_list('password', flat=True).first()

        if commit:
            user.save()
        return user


@admin.register(User)
class UserAdmin(ModelAdmin):
    form = UserAdminForm
    list_display = ['id', 'full_name', 'email', 'role_badge', 'status_badge', 'last_login_at']
    list_filter = [
        'role',
        'status',
        ('last_login_at', RangeDateTimeFilter),
    ]
    search_fields = ['first_name', 'last_name', 'email']
    list_filter_submit = True
    list_fullwidth = True

    fieldsets = (
        (_('Personal Information'), {
            'fields': ('first_name', 'last_name', 'email'),
            'classes': ['tab'],
        }),
        (_('Access & Security'), {
            'fields': ('role', 'status', 'password'),
            'classes': ['tab'],
            'description': _('Role decides which actions and assembly stages the user may record.')
        }),
        (_('Activity Tracking'), {
            'fields': ('last_login_at', 'last_login_api'),
            'classes': ['tab'],
        }),
    )

    @display(description=_("Name"), ordering='first_name')
    def full_name(self, obj):
        return obj.full_name

    @display(description=_("Role"), label=True)
    def role_badge(self, obj):
        colors = {
            'ADMIN': 'danger',
            'SUPERVISOR': 'warning',
            'ASSEMBLER': 'success',
            'INSPECTOR': 'primary',
            'VIEWER': 'info',
        }
        return colors.get(obj.role, 'info'), obj.get_role_display()

    @display(description=_("Status"), label=True)
    def status_badge(self, obj):
        if obj.status == 'ACTIVE':
            return 'success', obj.get_status_display()
        return 'danger', obj.get_status_display()


@admin.register(Session)
class SessionAdmin(ModelAdmin):
    list_display = ['id', 'user_link', 'ip_address', 'user_agent', 'last_activity']
    list_filter = [
        ('last_activity', RangeDateTimeFilter),
    ]
    search_fields = ['ip_address', 'user_agent', 'user__email']
    list_filter_submit = True
    readonly_fields = ['last_activity']

    @display(description=_("User"))
    def user_link(self, obj):
        if obj.user_id:
            url = reverse('admin:main_user_change', args=[obj.user_id])
            return format_html('<a href="{}">{}</a>', url, obj.user.full_name)
        return "-"
