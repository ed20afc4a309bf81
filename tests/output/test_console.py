"""Tests for the Rich console factory and theme."""

from bootctl.output.console import BOOT_THEME, create_console, get_output, style_for_status


class TestCreateConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console(no_color=True)
        console.print("hello")
        assert get_output(console) == "hello\n"

    def test_width_override(self) -> None:
        assert create_console(width=40).width == 40

    def test_default_width(self) -> None:
        assert create_console().width == 120

    def test_no_ansi_off_terminal(self) -> None:
        console = create_console()
        console.print("[boot.ok]OK[/]")
        assert "\x1b[" not in get_output(console)


class TestTheme:
    def test_status_styles_defined(self) -> None:
        for status in ("succeeded", "failed", "skipped", "not_run"):
            assert style_for_status(status) in BOOT_THEME.styles

    def test_unknown_status(self) -> None:
        assert style_for_status("exploded") == ""
