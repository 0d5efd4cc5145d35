"""Tests for privilege escalation."""
import shlex
import pytest
from unittest.mock import patch, MagicMock

from qyksys.errors import PrivilegeError
from qyksys.privilege import can_use_sudo, run_privileged, su_command_line


class TestSudoCheck:
    """Tests for sudo usability detection."""

    @patch('qyksys.privilege.get_user_groups')
    @patch('qyksys.privilege.command_exists')
    def test_sudo_usable_for_group_member(self, mock_command_exists, mock_groups):
        """Test sudo is used when installed and the user is in the sudo group."""
        mock_command_exists.return_value = True
        mock_groups.return_value = {'users', 'sudo'}

        assert can_use_sudo() is True

    @patch('qyksys.privilege.get_user_groups')
    @patch('qyksys.privilege.command_exists')
    def test_wheel_group_counts(self, mock_command_exists, mock_groups):
        mock_command_exists.return_value = True
        mock_groups.return_value = {'wheel'}

        assert can_use_sudo() is True

    @patch('qyksys.privilege.get_user_groups')
    @patch('qyksys.privilege.command_exists')
    def test_sudo_unusable_without_group(self, mock_command_exists, mock_groups):
        """Test sudo is skipped for users outside the admin groups."""
        mock_command_exists.return_value = True
        mock_groups.return_value = {'users'}

        assert can_use_sudo() is False

    @patch('qyksys.privilege.get_user_groups')
    @patch('qyksys.privilege.command_exists')
    def test_sudo_unusable_when_missing(self, mock_command_exists, mock_groups):
        mock_command_exists.return_value = False

        assert can_use_sudo() is False
        mock_groups.assert_not_called()


def test_su_command_line_keeps_directory_and_quotes_arguments():
    """Test the su script changes into the cwd and quotes every argument."""
    with patch('os.getcwd', return_value='/home/me/my repo'):
        script = su_command_line('apt-get', 'install', '-y', "it's")

    assert script.startswith("cd '/home/me/my repo' && ")
    assert shlex.split(script.split(' && ', 1)[1]) == ['apt-get', 'install', '-y', "it's"]


class TestRunPrivileged:
    """Tests for choosing the elevation method."""

    @patch('qyksys.privilege.sh')
    @patch('qyksys.privilege.is_root')
    def test_runs_directly_as_root(self, mock_is_root, mock_sh):
        """Test commands run without elevation when already root."""
        mock_is_root.return_value = True

        run_privileged('apt-get', 'update', '-y')

        mock_sh.Command.assert_called_once_with('apt-get')
        mock_sh.Command.return_value.assert_called_once_with('update', '-y', _fg=True)
        mock_sh.sudo.assert_not_called()

    @patch('qyksys.privilege.sh')
    @patch('qyksys.privilege.can_use_sudo')
    @patch('qyksys.privilege.is_root')
    def test_uses_sudo(self, mock_is_root, mock_can_sudo, mock_sh):
        """Test sudo is preferred over su."""
        mock_is_root.return_value = False
        mock_can_sudo.return_value = True

        run_privileged('dnf', 'install', '-y', 'ansible')

        mock_sh.sudo.assert_called_once_with('dnf', 'install', '-y', 'ansible', _fg=True)
        mock_sh.su.assert_not_called()

    @patch('qyksys.privilege.sys.stdin')
    @patch('qyksys.privilege.sh')
    @patch('qyksys.privilege.command_exists')
    @patch('qyksys.privilege.can_use_sudo')
    @patch('qyksys.privilege.is_root')
    def test_falls_back_to_su_on_terminal(self, mock_is_root, mock_can_sudo, mock_command_exists,
                                          mock_sh, mock_stdin):
        """Test su is used with the terminal when sudo is not usable."""
        mock_is_root.return_value = False
        mock_can_sudo.return_value = False
        mock_command_exists.side_effect = lambda command: command == 'su'
        mock_stdin.isatty.return_value = True

        with patch('os.getcwd', return_value='/srv/repo'):
            run_privileged('pacman', '-Sy', '--noconfirm', 'ansible')

        mock_sh.su.assert_called_once_with(
            'root', '-c', 'cd /srv/repo && pacman -Sy --noconfirm ansible', _fg=True
        )

    @patch('qyksys.privilege.has_controlling_terminal', return_value=True)
    @patch('qyksys.privilege.sys.stdin')
    @patch('qyksys.privilege.sh')
    @patch('qyksys.privilege.command_exists')
    @patch('qyksys.privilege.can_use_sudo')
    @patch('qyksys.privilege.is_root')
    def test_su_reads_from_dev_tty(self, mock_is_root, mock_can_sudo, mock_command_exists,
                                   mock_sh, mock_stdin, mock_has_tty):
        """Test su takes input from /dev/tty when stdin is redirected."""
        mock_is_root.return_value = False
        mock_can_sudo.return_value = False
        mock_command_exists.side_effect = lambda command: command == 'su'
        mock_stdin.isatty.return_value = False
        tty = MagicMock()
        tty.__enter__.return_value = tty

        with patch('builtins.open', return_value=tty) as mock_open:
            run_privileged('zypper', '-n', 'install', 'ansible')

        mock_open.assert_called_once_with('/dev/tty')
        _, kwargs = mock_sh.su.call_args
        assert kwargs['_in'] is tty

    @patch('qyksys.privilege.sh')
    @patch('qyksys.privilege.has_controlling_terminal', return_value=False)
    @patch('qyksys.privilege.command_exists')
    @patch('qyksys.privilege.can_use_sudo')
    @patch('qyksys.privilege.is_root')
    def test_su_without_terminal_fails(self, mock_is_root, mock_can_sudo, mock_command_exists,
                                       mock_has_tty, mock_sh):
        """Test su cannot be used non-interactively."""
        mock_is_root.return_value = False
        mock_can_sudo.return_value = False
        mock_command_exists.side_effect = lambda command: command == 'su'

        with pytest.raises(PrivilegeError, match="interactive terminal"):
            run_privileged('apt-get', 'update', '-y')

        mock_sh.su.assert_not_called()

    @patch('qyksys.privilege.command_exists')
    @patch('qyksys.privilege.can_use_sudo')
    @patch('qyksys.privilege.is_root')
    def test_no_mechanism_available(self, mock_is_root, mock_can_sudo, mock_command_exists):
        """Test a clear error when neither sudo nor su can be used."""
        mock_is_root.return_value = False
        mock_can_sudo.return_value = False
        mock_command_exists.return_value = False

        with pytest.raises(PrivilegeError, match="neither usable sudo nor su"):
            run_privileged('apt-get', 'update', '-y')
