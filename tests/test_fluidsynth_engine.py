"""
FluidSynth Sampler Tests
========================
pyfluidsynth is replaced with a Mock so no audio library is needed.
"""

import unittest
from datetime import timedelta
from unittest.mock import Mock, patch

import numpy as np

from saxkeys.engine.fluidsynth_engine import ALTO_SAX_PROGRAM, FluidSynthSampler
from saxkeys.production.error_handler import ProductionErrorHandler


class TestFluidSynthSampler(unittest.TestCase):

    def setUp(self):
        patcher = patch('saxkeys.engine.fluidsynth_engine.fluidsynth')
        self.fluidsynth = patcher.start()
        self.addCleanup(patcher.stop)

        self.fs = Mock()
        self.fs.sfload.return_value = 1
        self.fs.get_samples.side_effect = lambda n: np.full(n * 2, 16384, dtype=np.int16)
        self.fluidsynth.Synth.return_value = self.fs

        self.handler = ProductionErrorHandler()
        self.sampler = FluidSynthSampler(sample_rate=44100, error_handler=self.handler)

    def _soundfont(self):
        import tempfile
        from pathlib import Path
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = Path(tmp.name) / "sax.sf2"
        path.write_bytes(b"RIFF")
        return path

    def test_not_ready_until_loaded(self):
        self.assertFalse(self.sampler.ready)
        self.sampler.attack("C4")
        self.sampler.release("C4", timedelta(0))
        self.fs.noteon.assert_not_called()
        self.assertFalse(self.sampler.render(64).any())

    def test_load_selects_alto_sax(self):
        path = self._soundfont()
        self.assertTrue(self.sampler.load_soundfont(path))

        self.assertTrue(self.sampler.ready)
        self.fluidsynth.Synth.assert_called_once_with(gain=0.5, samplerate=44100.0)
        self.fs.sfload.assert_called_once_with(str(path))
        self.fs.program_select.assert_called_once_with(0, 1, 0, ALTO_SAX_PROGRAM)
        self.assertIn("sax.sf2", repr(self.sampler))

    def test_attack_and_release(self):
        self.sampler.load_soundfont(self._soundfont())

        self.sampler.attack("C3")
        self.fs.noteon.assert_called_once_with(0, 48, 100)

        self.sampler.release("C3", timedelta(milliseconds=10))
        self.sampler.render(100)
        self.fs.noteoff.assert_not_called()
        self.sampler.render(400)
        self.fs.noteoff.assert_called_once_with(0, 48)

    def test_render_converts_samples(self):
        self.sampler.load_soundfont(self._soundfont())
        block = self.sampler.render(32)

        self.assertEqual(block.shape, (32, 2))
        self.assertAlmostEqual(float(block[0, 0]), 0.5)

    def test_missing_file_reported(self):
        from pathlib import Path
        ok = self.sampler.load_soundfont(Path("/nonexistent/sax.sf2"))

        self.assertFalse(ok)
        self.assertFalse(self.sampler.ready)
        last = self.handler.last_error('sample_load')
        self.assertIsInstance(last.error, FileNotFoundError)
        self.assertEqual(last.user_message, "SoundFont File Not Found")

    def test_rejected_soundfont_reported(self):
        self.fs.sfload.return_value = -1
        self.assertFalse(self.sampler.load_soundfont(self._soundfont()))
        self.assertEqual(self.handler.get_error_statistics()['error_counts'], {'sample_load': 1})

    def test_background_load(self):
        done = Mock()
        thread = self.sampler.load(self._soundfont(), on_done=done)
        thread.join(timeout=5)

        done.assert_called_once_with(True)
        self.assertTrue(self.sampler.wait_ready(timeout=1))

    def test_shutdown_releases_synth(self):
        self.sampler.load_soundfont(self._soundfont())
        self.sampler.shutdown()

        self.fs.delete.assert_called_once()
        self.assertFalse(self.sampler.ready)
        self.assertIsNone(self.sampler.fs)

    def test_disconnect_silences(self):
        from saxkeys.engine.output import AudioOutput

        self.sampler.load_soundfont(self._soundfont())
        self.sampler.connect(AudioOutput())
        self.sampler.disconnect()
        self.fs.cc.assert_any_call(0, 123, 0)


def test_library_missing_reported(tmp_path):
    path = tmp_path / "sax.sf2"
    path.write_bytes(b"RIFF")
    handler = ProductionErrorHandler()

    with patch('saxkeys.engine.fluidsynth_engine.fluidsynth', None):
        sampler = FluidSynthSampler(error_handler=handler)
        assert sampler.load_soundfont(path) is False

    assert not sampler.ready
    assert handler.last_error('sample_load').user_message == "SoundFont Loading Failed"


def test_from_config(tmp_path):
    from saxkeys.config import FullConfig

    path = tmp_path / "alto.sf2"
    path.write_bytes(b"RIFF")
    config = FullConfig()
    config.audio.sample_rate = 44100
    config.sampler.soundfont = str(path)
    config.sampler.gain = 0.8

    with patch('saxkeys.engine.fluidsynth_engine.fluidsynth') as mock_fluidsynth:
        mock_fluidsynth.Synth.return_value.sfload.return_value = 0
        sampler = FluidSynthSampler.from_config(config)
        assert sampler.wait_ready(timeout=5)

    assert sampler.sample_rate == 44100
    assert sampler.gain == 0.8
    assert sampler.program == ALTO_SAX_PROGRAM
    mock_fluidsynth.Synth.assert_called_once_with(gain=0.8, samplerate=44100.0)


def test_from_config_disabled():
    from saxkeys.config import FullConfig

    config = FullConfig()
    config.sampler.enabled = False
    assert FluidSynthSampler.from_config(config) is None

    config.sampler.enabled = True
    sampler = FluidSynthSampler.from_config(config)
    assert sampler is not None
    assert not sampler.ready
