from __future__ import annotations

from unittest.mock import Mock, patch

from stock_import.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


@patch("stock_import.services.progress.is_tty_enabled")
def test_progress_tracker_disabled(mock_tty):
    mock_tty.return_value = False
    tracker = ProgressTracker(total_sources=3)
    assert tracker.enabled is False
    assert tracker.pbar is None

    tracker.start_source("acme")
    tracker.set_postfix(final=10)
    tracker.finish_source()
    tracker.close()
    assert tracker.current == 1


@patch("stock_import.services.progress.tqdm")
@patch("stock_import.services.progress.is_tty_enabled")
def test_progress_tracker_enabled(mock_tty, mock_tqdm):
    mock_tty.return_value = True
    mock_pbar = Mock()
    mock_tqdm.return_value = mock_pbar

    with ProgressTracker(total_sources=2) as tracker:
        assert tracker.enabled is True
        mock_tqdm.assert_called_once()
        assert mock_tqdm.call_args.kwargs["total"] == 2
        assert mock_tqdm.call_args.kwargs["unit"] == "source"

        tracker.start_source("acme")
        mock_pbar.set_description.assert_called_with("Importing sources (acme)")
        tracker.set_postfix(final=5)
        mock_pbar.set_postfix.assert_called_with(final=5)
        tracker.finish_source()
        mock_pbar.update.assert_called_with(1)

    mock_pbar.close.assert_called_once()
    assert tracker.pbar is None
