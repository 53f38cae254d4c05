"""Unit tests for AudioPlayer class."""

import pytest
from pathlib import Path

from soundrecorder.audio.player import AudioPlayer
from soundrecorder.errors import DeviceUnavailable, IOFailure, UnsupportedFormat


@pytest.mark.unit
class TestAudioPlayer:
    """Test cases for AudioPlayer class."""

    def test_plays_whole_file(self, mock_pyaudio, sample_audio_file):
        player = AudioPlayer(chunk_size=1024)

        player.play(sample_audio_file)

        stream = mock_pyaudio['stream']
        assert stream.write.call_count == 100
        assert player.frames_played == 100 * 1024
        assert player.is_playing is False
        stream.stop_stream.assert_called_once()
        stream.close.assert_called_once()
        mock_pyaudio['instance'].terminate.assert_called_once()

        _, kwargs = mock_pyaudio['instance'].open.call_args
        assert kwargs['output'] is True
        assert kwargs['channels'] == 1
        assert kwargs['rate'] == 16000
        mock_pyaudio['instance'].get_format_from_width.assert_called_once_with(2)

    def test_stop_halts_at_chunk_boundary(self, mock_pyaudio, sample_audio_file):
        player = AudioPlayer(chunk_size=1024)
        mock_pyaudio['stream'].write.side_effect = lambda data: player.stop()

        player.play(sample_audio_file)

        assert mock_pyaudio['stream'].write.call_count == 1
        assert player.frames_played == 1024

    def test_stop_before_play(self, mock_pyaudio, sample_audio_file):
        player = AudioPlayer()
        player.stop()

        player.play(sample_audio_file)

        mock_pyaudio['instance'].open.assert_not_called()
        assert player.frames_played == 0

        # The pending stop was consumed
        player.play(sample_audio_file)
        assert player.frames_played == 100 * 1024

    def test_stop_of_same_session_before_play(self, mock_pyaudio, sample_audio_file):
        player = AudioPlayer()
        player.stop(session=4)

        player.play(sample_audio_file, session=4)

        mock_pyaudio['instance'].open.assert_not_called()

    def test_late_stop_does_not_reach_next_playback(self, mock_pyaudio, sample_audio_file):
        player = AudioPlayer()
        player.play(sample_audio_file, session=1)

        # Arrives after play() of session 1 returned
        player.stop(session=1)
        player.play(sample_audio_file, session=2)

        assert player.frames_played == 100 * 1024

    def test_pending_stop_of_other_session_is_discarded(self, mock_pyaudio, sample_audio_file):
        player = AudioPlayer()
        player.stop(session=1)

        player.play(sample_audio_file, session=2)

        assert player.frames_played == 100 * 1024

    def test_unsupported_format(self, mock_pyaudio, temp_data_dir):
        path = Path(temp_data_dir) / "notes.wav"
        path.write_text("not audio at all")
        player = AudioPlayer()

        with pytest.raises(UnsupportedFormat):
            player.play(str(path))

        assert player.is_playing is False
        mock_pyaudio['instance'].open.assert_not_called()

    def test_missing_file(self, mock_pyaudio, temp_data_dir):
        player = AudioPlayer()

        with pytest.raises(IOFailure):
            player.play(str(Path(temp_data_dir) / "missing.wav"))

    def test_output_device_unavailable(self, mock_pyaudio, sample_audio_file):
        mock_pyaudio['instance'].open.side_effect = OSError("Invalid output device")
        player = AudioPlayer()

        with pytest.raises(DeviceUnavailable):
            player.play(sample_audio_file)

        mock_pyaudio['instance'].terminate.assert_called_once()

    def test_write_failure(self, mock_pyaudio, sample_audio_file):
        mock_pyaudio['stream'].write.side_effect = OSError("Output underflowed")
        player = AudioPlayer()

        with pytest.raises(IOFailure):
            player.play(sample_audio_file)

        mock_pyaudio['stream'].close.assert_called_once()
        assert player.is_playing is False
