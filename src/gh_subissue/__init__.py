"""gh-subissue.

Creates GitHub issues and links them under a parent issue in one command:
- create, link and optionally add to a project
- list the sub-issues of a parent
- add an existing issue to a project
- report which repositories support sub-issues
"""

__version__ = "0.1.0"

from gh_subissue.config import SubissueSettings

__all__ = ["__version__", "SubissueSettings"]
