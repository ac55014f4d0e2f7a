"""Fixed DXL topics and names used to reach the ePO services."""

# Service type of the ePO "commands" DXL service
EPO_COMMANDS_SERVICE_TYPE = "/mcafee/service/epo/commands"

# Prefix for ePO "commands" service request topics
EPO_COMMANDS_REQUEST_PREFIX = "/mcafee/service/epo/command/"

# Sits between the unique identifier and the command path on "commands" topics
EPO_COMMANDS_COMMAND_INFIX = "/remote/"

# Service type of the legacy ePO "remote" DXL service
EPO_REMOTE_SERVICE_TYPE = "/mcafee/service/epo/remote"

# Prefix for ePO "remote" service request topics
EPO_REMOTE_REQUEST_PREFIX = EPO_REMOTE_SERVICE_TYPE + "/"

# Topic to query for registered service instances
DXL_SERVICE_REGISTRY_QUERY_TOPIC = "/mcafee/service/dxl/svcregistry/query"

# Default topic ePO publishes threat events to
EPO_THREAT_EVENT_TOPIC = "/mcafee/event/epo/threat/response"

# Name of the ePO "help" remote command
EPO_HELP_COMMAND = "core.help"

# Output format requested from the legacy "remote" service
REMOTE_OUTPUT_FORMAT_JSON = "json"

# Metadata field holding the ePO GUID on "commands" service registrations
EPO_GUID_METADATA_KEY = "epoGuid"

# Status text before any identifier lookup has completed
EPO_ID_NOT_DETERMINED = "ePO unique identifier not yet determined"

# Status text after a successful identifier lookup
EPO_ID_FOUND = "ePO id found"
