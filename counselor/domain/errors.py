"""
Errors that abort an operation or a whole turn.

Anything the agent can recover from in-conversation is returned as a
``ToolResult`` instead of being raised.
"""


class CounselorError(Exception):
    """Base class for counselor errors"""


class PathSafetyError(CounselorError):
    """A memory path failed the sandbox checks"""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path


class PathRejected(PathSafetyError):
    """Logical path does not live under the virtual root"""

    def __init__(self, path: str, virtual_root: str):
        super().__init__(path, f"Path must start with {virtual_root}, got: {path}")


class PathEscape(PathSafetyError):
    """Resolved path lands outside the storage root"""

    def __init__(self, path: str):
        super().__init__(path, f"Path traversal detected: {path}")


class UnknownToolError(CounselorError):
    """The model asked for a tool that is not in the catalog"""

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool requested: {tool_name}")
        self.tool_name = tool_name


class InferenceError(CounselorError):
    """The inference backend failed or returned something unusable"""
