from booking_core.lifecycle.locks import ResourceLockRegistry
from booking_core.lifecycle.manager import BookingLifecycleManager
from booking_core.lifecycle.state_machine import BookingStateMachine, Transition

__all__ = [
    "BookingLifecycleManager",
    "BookingStateMachine",
    "ResourceLockRegistry",
    "Transition",
]
