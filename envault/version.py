"""EnVault Meta information.
   EnVault keeps per-environment variables encrypted at rest,
   validated against a schema and diffable across environments.
"""
__title__ = 'envault'
__description__ = (
   'Self-hosted secrets manager core: encryption at rest, '
   '.env parsing, schema validation and environment diffs.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2026 EnVault Contributors'
__author__ = 'EnVault Contributors'
__author_email__ = 'maintainers@envault.dev'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/envault/envault'
