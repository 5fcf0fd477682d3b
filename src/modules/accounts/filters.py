import django_filters

from modules.accounts.models import Account, Role


class AccountFilter(django_filters.FilterSet):
    role = django_filters.ChoiceFilter(field_name="role", choices=Role.choices)
    active = django_filters.BooleanFilter(field_name="is_active")

    class Meta:
        model = Account
        fields = ["role", "active"]
