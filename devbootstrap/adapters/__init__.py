"""
Adapters — narrow wrappers around the external tools the pipeline drives.

Public API:
    from devbootstrap.adapters.registry import Toolbox, build_toolbox
"""
