"""Composerify - convert platform-upstream Drupal sites to Composer-managed sites.

Components:
- Process executor and git facade (executor.py, git_ops.py)
- Conversion, release and restore workflows
- Platform client, manifest editor and contrib project scanner
"""

__version__ = "0.3.0"
