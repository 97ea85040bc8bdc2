"""
Install script composition: turns a tool's command templates into the lines
of a bash script.
"""

import logging
from typing import List

from ..models.tool import ToolSpec

ARTIFACT_PLACEHOLDER = "$FILEPATH"
STRICT_MODE_HEADER = "set -ex"


class ScriptComposer:
    """Builds the install script body for a tool."""

    def __init__(self, header: str = STRICT_MODE_HEADER):
        self.logger = logging.getLogger(__name__)
        self.header = header

    def compose(self, tool: ToolSpec, artifact_path: str = "") -> List[str]:
        """
        Compose the script lines for a tool.

        Args:
            tool: Tool specification
            artifact_path: Local artifact path, empty when nothing was downloaded

        Returns:
            Header, optional proxy-enable line, substituted commands and
            optional proxy-disable line
        """
        lines: List[str] = [self.header]

        if tool.proxy and tool.proxy.enable_script:
            lines.append(tool.proxy.enable_script)

        lines.extend(
            command.replace(ARTIFACT_PLACEHOLDER, artifact_path)
            for command in tool.scripts
        )

        if tool.proxy and tool.proxy.disable_script:
            lines.append(tool.proxy.disable_script)

        self.logger.debug(f"Composed {len(lines)} script lines for {tool.tool_id}")
        return lines

    @staticmethod
    def render(lines: List[str]) -> str:
        return "\n".join(lines)
