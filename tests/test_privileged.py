"""
Tests for the privileged file writer.
"""

from vhostctl.adapters.mock import MockExecutor
from vhostctl.adapters.shell.privileged import PrivilegedFileWriter
from vhostctl.core.models.settings import CommandSettings
from vhostctl.core.models.transcript import Transcript


class TestPrivilegedFileWriter:
    def test_escalate_prefixes_argv(self):
        writer = PrivilegedFileWriter(MockExecutor(), CommandSettings(escalate=["doas"]))
        assert writer.escalate(["/bin/rm", "-f", "/x"]).argv == ["doas", "/bin/rm", "-f", "/x"]

    def test_empty_escalation_prefix(self):
        writer = PrivilegedFileWriter(MockExecutor(), CommandSettings(escalate=[]))
        assert writer.escalate(["true"]).argv == ["true"]

    def test_write_pipes_content_on_stdin(self):
        mock = MockExecutor()
        writer = PrivilegedFileWriter(mock)
        assert writer.write("/etc/hosts", "127.0.0.1\tsecret.test\n")

        cmd = mock.calls[0]
        assert cmd.argv == ["sudo", "-n", "/usr/bin/tee", "/etc/hosts"]
        assert cmd.stdin == "127.0.0.1\tsecret.test\n"
        assert cmd.discard_stdout
        assert "secret.test" not in cmd.display

    def test_remove(self):
        mock = MockExecutor()
        PrivilegedFileWriter(mock).remove("/etc/nginx/sites-enabled/a.test.conf")
        assert mock.displays == ["sudo -n /bin/rm -f /etc/nginx/sites-enabled/a.test.conf"]

    def test_symlink(self):
        mock = MockExecutor()
        PrivilegedFileWriter(mock).symlink("/a/src.conf", "/b/link.conf")
        assert mock.calls[0].argv == ["sudo", "-n", "/bin/ln", "-sf", "/a/src.conf", "/b/link.conf"]

    def test_can_escalate_runs_noop(self):
        mock = MockExecutor()
        transcript = Transcript()
        assert PrivilegedFileWriter(mock).can_escalate(transcript)
        assert mock.displays == ["sudo -n true"]
        assert transcript.commands == ["sudo -n true"]

    def test_can_escalate_fails_when_password_needed(self):
        mock = MockExecutor()
        mock.set_failure("sudo -n true", output="sudo: a password is required")
        result = PrivilegedFileWriter(mock).can_escalate()
        assert not result.ok
        assert "password" in result.output

    def test_failure_recorded(self):
        mock = MockExecutor()
        mock.set_failure("tee", output="tee: permission denied")
        transcript = Transcript()
        result = PrivilegedFileWriter(mock).write("/etc/hosts", "x", transcript)
        assert not result.ok
        assert "permission denied" in transcript.text
        assert "[exit 1]" in transcript.text

    def test_really_writes(self, settings, executor, tmp_path):
        writer = PrivilegedFileWriter(executor, settings.commands)
        target = tmp_path / "out.txt"
        assert writer.write(str(target), "line one\nline two\n")
        assert target.read_text() == "line one\nline two\n"
