import unittest

from hap import scripts


class TestScripts(unittest.TestCase):
    def test_happened_guard_text(self):
        self.assertEqual(
            scripts.HAPPENED,
            "if [[ $(git rev-parse HEAD) = $(cat .happended) ]]; then "
            'echo "Already completed. Commit again?"; exit 2; fi',
        )
        self.assertEqual(scripts.HAPPENED_EXIT_STATUS, 2)

    def test_stamp_text(self):
        self.assertEqual(scripts.STAMP, "echo `git rev-parse HEAD` > .happended")
        self.assertEqual(scripts.SENTINEL, ".happended")

    def test_post_receive_hook_text(self):
        self.assertEqual(
            scripts.POST_RECEIVE_HOOK,
            'echo "#!/bin/sh\ncd ..\nunset GIT_DIR\n'
            "while read oldrev newrev refname; do git checkout -f "
            '\\${refname#refs/heads/}; done" > .git/hooks/post-receive',
        )

    def test_scripts_survive_single_quoted_shell(self):
        for script in (scripts.HAPPENED, scripts.STAMP, scripts.POST_RECEIVE_HOOK):
            self.assertNotIn("'", script)


if __name__ == "__main__":
    unittest.main()
