"""Unit tests for SoundRecorderConfig."""

import pytest
from pathlib import Path

from soundrecorder.config import SoundRecorderConfig, DEFAULT_CONFIG


@pytest.mark.unit
class TestSoundRecorderConfig:

    def test_defaults_without_file(self):
        config = SoundRecorderConfig()

        assert config.get('audio.sample_rate') == 44100
        assert config.get('timer.label') == "Record Time"
        assert config.get('timer.interval_seconds') == 1.0
        assert config.get_file_suffix() == ".wav"
        assert Path(config.get('storage.save_directory')) == Path.cwd() / "recordings"

    def test_defaults_are_not_shared(self):
        config = SoundRecorderConfig()
        config.set('audio.sample_rate', 8000)

        assert DEFAULT_CONFIG['audio']['sample_rate'] == 44100

    def test_file_merges_over_defaults(self, temp_data_dir):
        path = Path(temp_data_dir) / "soundrecorder.yaml"
        path.write_text(
            "audio:\n"
            "  sample_rate: 16000\n"
            "timer:\n"
            "  label: Play Time\n"
            "storage:\n"
            "  save_directory: takes\n"
        )

        config = SoundRecorderConfig(str(path))

        assert config.get('audio.sample_rate') == 16000
        assert config.get('audio.channels') == 2
        assert config.get('timer.label') == "Play Time"
        assert config.get_save_directory() == str(Path(temp_data_dir).absolute() / "takes")
        assert config.get('logging.file_path') == str(Path(temp_data_dir) / "logs" / "soundrecorder.log")

    def test_empty_file_uses_defaults(self, temp_data_dir):
        path = Path(temp_data_dir) / "empty.yaml"
        path.write_text("")

        config = SoundRecorderConfig(str(path))

        assert config.get('session.join_timeout_seconds') == 5.0

    def test_missing_file(self, temp_data_dir):
        with pytest.raises(FileNotFoundError):
            SoundRecorderConfig(str(Path(temp_data_dir) / "missing.yaml"))

    def test_invalid_yaml(self, temp_data_dir):
        path = Path(temp_data_dir) / "bad.yaml"
        path.write_text("audio: [unclosed\n")

        with pytest.raises(ValueError):
            SoundRecorderConfig(str(path))

    def test_non_mapping_yaml(self, temp_data_dir):
        path = Path(temp_data_dir) / "list.yaml"
        path.write_text("- one\n- two\n")

        with pytest.raises(ValueError):
            SoundRecorderConfig(str(path))

    def test_get_and_set_dot_paths(self):
        config = SoundRecorderConfig()

        config.set('playback.output_device_index', 2)
        config.set('extra.nested.value', "x")

        assert config.get('playback.output_device_index') == 2
        assert config.get('extra.nested.value') == "x"
        assert config.get('audio.missing', "fallback") == "fallback"

    def test_file_suffix_gets_a_dot(self):
        config = SoundRecorderConfig()
        config.set('storage.file_suffix', "wav")

        assert config.get_file_suffix() == ".wav"
