"""Events admin module.

Django autodiscover imports this package, which registers the admin classes
through the ``@admin.register`` decorators in the submodules.
"""

from events.admin.event import EventAdmin, SweepCheckpointAdmin
from events.admin.registration import RegistrationAdmin

__all__ = [
    "EventAdmin",
    "RegistrationAdmin",
    "SweepCheckpointAdmin",
]
