"""Starter content for newly created versions."""

from forkwatch.core.versions import display_version

JSX_EXTENSIONS = (".tsx", ".jsx")

_JSX_TEMPLATE = """\
import React from 'react';

export default function {identifier}() {{
  return (
    <div>
      {display}
    </div>
  );
}}
"""

_PLAIN_TEMPLATE = """\
import React from 'react';

export default function {identifier}() {{
  return React.createElement('div', null, '{display}');
}}
"""


def new_version_template(identifier: str, key: str, extension: str) -> str:
    """
    Minimal component body for a new version.

    JSX syntax is only used for extensions that allow it.

    Example:
        >>> "WidgetV3" in new_version_template("WidgetV3", "v3", ".tsx")
        True
    """
    template = _JSX_TEMPLATE if extension in JSX_EXTENSIONS else _PLAIN_TEMPLATE
    return template.format(identifier=identifier, display=display_version(key))
