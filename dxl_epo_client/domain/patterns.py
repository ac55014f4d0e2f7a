"""Topic pattern management for ePO DXL requests."""

from .constants import (
    DXL_SERVICE_REGISTRY_QUERY_TOPIC,
    EPO_COMMANDS_COMMAND_INFIX,
    EPO_COMMANDS_REQUEST_PREFIX,
    EPO_REMOTE_REQUEST_PREFIX,
)


class TopicPatterns:
    """Centralized topic building for the ePO services."""

    @staticmethod
    def commands_request(epo_unique_id: str, command_name: str) -> str:
        """Request topic for a command on the "commands" service.

        ``system.find`` on ``epo1`` becomes
        ``/mcafee/service/epo/command/epo1/remote/system/find``.
        """
        return (
            EPO_COMMANDS_REQUEST_PREFIX
            + epo_unique_id
            + EPO_COMMANDS_COMMAND_INFIX
            + command_name.replace(".", "/")
        )

    @staticmethod
    def remote_request(epo_unique_id: str) -> str:
        """Request topic for the legacy "remote" service."""
        return EPO_REMOTE_REQUEST_PREFIX + epo_unique_id

    @staticmethod
    def registry_query() -> str:
        """Service registry query topic."""
        return DXL_SERVICE_REGISTRY_QUERY_TOPIC

    @staticmethod
    def remote_id_from_channel(channel: str) -> str | None:
        """Unique identifier carried by a "remote" request channel, if any."""
        if channel.startswith(EPO_REMOTE_REQUEST_PREFIX):
            return channel[len(EPO_REMOTE_REQUEST_PREFIX) :]
        return None

    @staticmethod
    def is_valid_command_name(name: str) -> bool:
        """Only an empty name is rejected.

        Names are otherwise sent exactly as given; the ePO server decides
        whether a command exists.
        """
        return bool(name)
