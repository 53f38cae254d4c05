"""SoundRecorder - record a take from the microphone, save it and play it back."""

__version__ = "0.1.0"
