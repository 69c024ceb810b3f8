"""Django Unfold admin configuration."""

from django.urls import reverse_lazy
from django.utils.translation import gettext_lazy as _

from .base import VERSION

UNFOLD = {
    "SITE_TITLE": f"QueueSkip v{VERSION} Admin",
    "SITE_HEADER": f"QueueSkip v{VERSION} Administration",
    "SITE_URL": "/",
    "SHOW_HISTORY": True,
    "SIDEBAR": {
        "show_search": True,
        "show_all_applications": False,
        "navigation": [
            {
                "title": _("Users & Venues"),
                "separator": True,
                "collapsible": True,
                "items": [
                    {
                        "title": _("Users"),
                        "icon": "person",
                        "link": reverse_lazy("admin:accounts_queueskipuser_changelist"),
                    },
                    {
                        "title": _("Venues"),
                        "icon": "store",
                        "link": reverse_lazy("admin:venues_venue_changelist"),
                    },
                    {
                        "title": _("Venue Associations"),
                        "icon": "group",
                        "link": reverse_lazy("admin:venues_uservenueassociation_changelist"),
                    },
                    {
                        "title": _("Pass Types"),
                        "icon": "category",
                        "link": reverse_lazy("admin:venues_passtype_changelist"),
                    },
                    {
                        "title": _("Allocation Rules"),
                        "icon": "rule",
                        "link": reverse_lazy("admin:venues_passallocationrule_changelist"),
                    },
                ],
            },
            {
                "title": _("Passes"),
                "separator": True,
                "collapsible": True,
                "items": [
                    {
                        "title": _("Passes"),
                        "icon": "confirmation_number",
                        "link": reverse_lazy("admin:passes_pass_changelist"),
                    },
                    {
                        "title": _("Transfers"),
                        "icon": "swap_horiz",
                        "link": reverse_lazy("admin:passes_transferrecord_changelist"),
                    },
                    {
                        "title": _("Redemptions"),
                        "icon": "qr_code_scanner",
                        "link": reverse_lazy("admin:passes_redemptionrecord_changelist"),
                    },
                    {
                        "title": _("Notarizations"),
                        "icon": "verified",
                        "link": reverse_lazy("admin:notary_notarizationrequest_changelist"),
                    },
                ],
            },
        ],
    },
}
