"""Stage orchestrator for directory-backed prompt execution.

The filesystem is the queue: an artifact's containing directory is its state.
One pass lists ``preprocessed/``, runs the external executable against each
artifact under a hard timeout, stamps the outcome into the artifact header and
moves the file into ``results/<status>/``.

Do not run two passes over the same stage directory at the same time. Each
artifact is assumed to be claimed by exactly one pass; there is no lock file.
"""
