"""Unit tests for the recorder error hierarchy."""

import pytest

from soundrecorder.errors import RecorderError, DeviceUnavailable, IOFailure, UnsupportedFormat


@pytest.mark.unit
class TestRecorderError:

    def test_user_message_without_cause(self):
        error = IOFailure("disk full")

        assert error.get_user_message() == "disk full"
        assert str(error) == "disk full"

    def test_user_message_includes_cause(self):
        error = DeviceUnavailable("Could not open the audio input device", OSError("Invalid input device"))

        assert error.get_user_message() == "Could not open the audio input device\n(Invalid input device)"
        assert isinstance(error.original_exception, OSError)

    @pytest.mark.parametrize("error_class", [DeviceUnavailable, IOFailure, UnsupportedFormat])
    def test_subclasses_are_recorder_errors(self, error_class):
        with pytest.raises(RecorderError):
            raise error_class("failed")

    def test_errors_carry_no_presentation(self):
        # Dialog titles belong to the session controller
        assert not hasattr(RecorderError("failed"), "title")
