"""
Core services — the pipeline's building blocks.

    probe             where is a tool right now?
    preconditions     is a directory install complete, absent or corrupted?
    package_installer bootstrap the package manager, batch-install packages
    repair            clear a half-finished install
    clone_recovery    clone with one interactive SSH-key retry
    propagator        the single writer of PATH and SDK variables
"""
