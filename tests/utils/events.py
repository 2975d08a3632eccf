from typing import List

from gateway.domain.entities import SecurityEvent


def logged_events(uow) -> List[SecurityEvent]:
    """SecurityEvent objects passed to a mocked security_events.create, in order"""
    return [call.args[0] for call in uow.security_events.create.call_args_list]


def logged_types(uow) -> List[str]:
    return [event.event_type for event in logged_events(uow)]
