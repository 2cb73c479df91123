from __future__ import annotations

import contextlib
import io
import json
import os
import socket
import unittest
from pathlib import Path

from fake_instance import FakeInstance, short_tempdir, wait_for_recording, write_recording_instance

from instancelauncher.__main__ import main


def _run(argv: list[str], *, root: Path, environ: dict[str, str] | None = None) -> tuple[int, str]:
    env = {"HOME": str(root / "home"), "XDG_CACHE_HOME": str(root / "cache")}
    if environ is not None:
        env = environ
    err = io.StringIO()
    with contextlib.redirect_stderr(err):
        rc = main(argv, environ=env, platform="linux", self_path=root / "app" / "bin" / "launcher")
    return rc, err.getvalue()


@unittest.skipUnless(hasattr(socket, "AF_UNIX") and os.name != "nt", "needs Unix domain sockets and POSIX scripts")
class CliTests(unittest.TestCase):
    def test_spawns_when_nothing_listens(self) -> None:
        with short_tempdir() as td:
            root = Path(td)
            record = write_recording_instance(root / "app" / "target-executable")
            rc, err = _run(["foo", "bar", "baz"], root=root)
            self.assertEqual(rc, 0, err)
            self.assertEqual(wait_for_recording(record)["argv"], [str(root / "app" / "target-executable"), "foo", "bar", "baz"])

    def test_forwards_to_running_instance(self) -> None:
        with short_tempdir() as td:
            root = Path(td)
            address = root / "cache" / "instance-launcher" / "instance.lock"
            with FakeInstance(address) as inst:
                rc, err = _run(["foo", "bar", "baz"], root=root)
                self.assertEqual(rc, 0, err)
                self.assertEqual(inst.received(), [b'{"msg":"HELLO"}', b'{"args":["foo","bar","baz"]}'])

    def test_ready_mismatch_exits_1_with_kind(self) -> None:
        with short_tempdir() as td:
            root = Path(td)
            address = root / "cache" / "instance-launcher" / "instance.lock"
            with FakeInstance(address, ready_reply=b"WRONG"):
                rc, err = _run(["foo"], root=root)
            self.assertEqual(rc, 1)
            self.assertIn("UnknownReady", err)

    def test_ok_mismatch_exits_1_with_kind(self) -> None:
        with short_tempdir() as td:
            root = Path(td)
            address = root / "cache" / "instance-launcher" / "instance.lock"
            with FakeInstance(address, ok_reply=b"WRONG"):
                rc, err = _run(["foo"], root=root)
            self.assertEqual(rc, 1)
            self.assertIn("UnknownOk", err)

    def test_missing_home(self) -> None:
        with short_tempdir() as td:
            rc, err = _run(["foo"], root=Path(td), environ={})
            self.assertEqual(rc, 1)
            self.assertIn("MissingEnvironment", err)

    def test_spawn_failure(self) -> None:
        with short_tempdir() as td:
            rc, err = _run([], root=Path(td))
            self.assertEqual(rc, 1)
            self.assertIn("SpawnFailed", err)

    def test_invalid_config(self) -> None:
        with short_tempdir() as td:
            root = Path(td)
            env = {"HOME": str(root), "INSTANCE_LAUNCHER_TIMEOUT": "later"}
            rc, err = _run([], root=root, environ=env)
            self.assertEqual(rc, 1)
            self.assertIn("InvalidConfig", err)

    def test_config_file_beside_launcher(self) -> None:
        with short_tempdir() as td:
            root = Path(td)
            (root / "app" / "bin").mkdir(parents=True)
            (root / "app" / "bin" / "launcher_config.json").write_text(
                json.dumps({"app_name": "other-app", "executable_name": "other-exe"}), encoding="utf-8"
            )
            record = write_recording_instance(root / "app" / "other-exe")
            rc, err = _run(["x"], root=root)
            self.assertEqual(rc, 0, err)
            self.assertEqual(wait_for_recording(record)["argv"][1:], ["x"])

            address = root / "cache" / "other-app" / "instance.lock"
            with FakeInstance(address) as inst:
                rc, err = _run(["y"], root=root)
                self.assertEqual(rc, 0, err)
                self.assertEqual(inst.received()[1], b'{"args":["y"]}')


if __name__ == "__main__":
    unittest.main()
