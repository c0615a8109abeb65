from abc import ABC, abstractmethod

from repairconnect.domain.entities.appointment import AppointmentEvent


class NotifierPort(ABC):
    @abstractmethod
    def notify(self, event: AppointmentEvent) -> None:
        """Dispatch a committed appointment change. May raise; callers log and continue."""
        raise NotImplementedError
