"""Built-in ``scw`` commands.

Modules:
    resources: ``ps``, ``images``, ``snapshots``, ``bootscripts``, ``inspect``.
    servers: ``start``, ``stop``, ``reboot``, ``create``.
    cache: ``cache show``, ``cache clear``.
    config: ``config show``, ``config set``.
    common: session setup and name disambiguation shared by the above.
"""
