"""Shell snippets installed on or run against provisioned hosts.

Hosts provisioned earlier rely on these exact strings; they are sent inside
``sh -c '...'`` so they must never contain a single quote.
"""
from __future__ import annotations

# File on the remote holding the last successfully built commit.
SENTINEL = ".happended"

# Exit status of HAPPENED when the current commit was already built.
HAPPENED_EXIT_STATUS = 2

# Checks whether the build already happened for the current commit.
HAPPENED = (
    "if [[ $(git rev-parse HEAD) = $(cat .happended) ]]; "
    'then echo "Already completed. Commit again?"; exit 2; fi'
)

# Records the current commit once every build command succeeded.
STAMP = "echo `git rev-parse HEAD` > .happended"

# Writes .git/hooks/post-receive: check out the pushed branch into the work tree.
POST_RECEIVE_HOOK = (
    'echo "#!/bin/sh\n'
    "cd ..\n"
    "unset GIT_DIR\n"
    "while read oldrev newrev refname; do "
    'git checkout -f \\${refname#refs/heads/}; done" > .git/hooks/post-receive'
)

# Branch a detached HEAD is pushed to.
DETACHED_BRANCH = "happened"
