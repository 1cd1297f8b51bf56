"""
Round-trip tests through real codecs (soundfile / libsndfile).
"""

import numpy as np
import pytest
import soundfile as sf

from soundboard_io import (
    AudioFile,
    AudioFileNotFoundError,
    ReadableAudioFile,
    UnsupportedBitDepthError,
    UnsupportedFormatError,
    UnsupportedSampleRateError,
    WriteableAudioFile,
)
from soundboard_io.formats.soundfile_backend import (
    FLAC_QUALITY_OPTIONS,
    OGG_QUALITY_OPTIONS,
    flac_compression_level,
    vorbis_compression_level,
)
from soundboard_io.testing import create_test_tone


def quantization_tolerance(bits):
    # Writes and reads use slightly different full-scale values.
    return 2.0 / (2 ** (bits - 1) - 1)


class TestLosslessRoundTrip:
    """Tests for write-then-read through PCM formats."""

    @pytest.mark.parametrize(
        "extension,bit_depth",
        [
            ("wav", 8), ("wav", 16), ("wav", 24),
            ("aiff", 8), ("aiff", 16), ("aiff", 24),
            ("flac", 16), ("flac", 24),
        ],
    )
    def test_float_within_quantization(self, tmp_path, extension, bit_depth):
        path = tmp_path / f"tone.{extension}"
        tone = create_test_tone(frames=4410, channels=2, sample_rate=44100)

        with WriteableAudioFile(path, 44100, num_channels=2, bit_depth=bit_depth) as f:
            f.write(tone)

        with ReadableAudioFile(path) as f:
            assert f.frames == 4410
            assert f.channels == 2
            assert f.samplerate == 44100
            audio = f.read(f.frames)

        assert audio.dtype == np.float32
        np.testing.assert_allclose(audio, tone, atol=quantization_tolerance(bit_depth))

    def test_wav_32_bit_is_float(self, tmp_path):
        path = tmp_path / "tone.wav"
        tone = create_test_tone(frames=1000, channels=1)

        with WriteableAudioFile(path, 48000, bit_depth=32) as f:
            assert f.file_dtype == "float32"
            f.write(tone)

        with ReadableAudioFile(path) as f:
            assert f.file_dtype == "float32"
            np.testing.assert_array_equal(f.read(1000), tone)

    def test_int16_raw_is_exact(self, tmp_path, stereo_int16):
        path = tmp_path / "ramp.wav"
        with WriteableAudioFile(path, 44100, num_channels=2, bit_depth=16) as f:
            f.write(stereo_int16)

        with ReadableAudioFile(path) as f:
            assert f.file_dtype == "int16"
            raw = f.read_raw(100)

        assert raw.dtype == np.int16
        np.testing.assert_array_equal(raw, stereo_int16)

    def test_int8_raw_is_exact(self, tmp_path):
        samples = np.array([-128, -64, -1, 0, 1, 64, 127], dtype=np.int8)
        path = tmp_path / "ramp.wav"
        with WriteableAudioFile(path, 8000, bit_depth=8) as f:
            f.write(samples)

        with ReadableAudioFile(path) as f:
            assert f.file_dtype == "int8"
            raw = f.read_raw(7)

        assert raw.dtype == np.int8
        np.testing.assert_array_equal(raw[0], samples)

    def test_int24_raw_is_exact(self, tmp_path):
        native = np.array([-(1 << 23), -12345, 0, 12345, (1 << 23) - 1], dtype=np.int32)
        path = tmp_path / "ramp.flac"
        with WriteableAudioFile(path, 44100, bit_depth=24) as f:
            f.write(native << 8)

        with ReadableAudioFile(path) as f:
            assert f.file_dtype == "int24"
            raw = f.read_raw(5)

        assert raw.dtype == np.int32
        np.testing.assert_array_equal(raw[0], native)

    def test_any_sample_rate_for_wav(self, tmp_path):
        path = tmp_path / "odd.wav"
        with WriteableAudioFile(path, 12345) as f:
            f.write(np.zeros(100, dtype=np.float32))

        with ReadableAudioFile(path) as f:
            assert f.samplerate == 12345


class TestStreaming:
    """Tests for chunked writes and reads of longer files."""

    def test_chunked_reads_match_whole_read(self, tmp_path):
        path = tmp_path / "long.wav"
        tone = create_test_tone(frames=20000, channels=2)
        with WriteableAudioFile(path, 44100, num_channels=2) as f:
            f.write(tone.T)
            assert f.frames == 20000

        with ReadableAudioFile(path) as f:
            whole = f.read(f.frames)
            f.seek(0)
            pieces = []
            while f.tell() < f.frames:
                pieces.append(f.read(3000))

        np.testing.assert_array_equal(np.concatenate(pieces, axis=1), whole)

    def test_interleaved_and_planar_files_identical(self, tmp_path):
        tone = create_test_tone(frames=10000, channels=2)
        with WriteableAudioFile(tmp_path / "planar.wav", 44100, num_channels=2) as f:
            f.write(tone)
        with WriteableAudioFile(tmp_path / "interleaved.wav", 44100, num_channels=2) as f:
            f.write(np.ascontiguousarray(tone.T))

        assert (tmp_path / "planar.wav").read_bytes() == (tmp_path / "interleaved.wav").read_bytes()

    @pytest.mark.parametrize("extension", ["wav", "aiff", "flac"])
    def test_flush_on_disk_file(self, tmp_path, extension):
        path = tmp_path / f"flushed.{extension}"
        tone = create_test_tone(frames=500)
        with WriteableAudioFile(path, 44100) as f:
            f.write(tone)
            f.flush()
            f.write(tone)
            f.flush()

        assert sf.info(str(path)).frames == 1000
        with ReadableAudioFile(path) as f:
            np.testing.assert_allclose(
                f.read(1000), np.concatenate([tone, tone], axis=1), atol=quantization_tolerance(16)
            )


class TestUnknownSubtype:
    """Tests for files whose encoding has no plain sample width."""

    def test_ima_adpcm_wav(self, tmp_path):
        if "IMA_ADPCM" not in sf.available_subtypes("WAV"):
            pytest.skip("libsndfile built without IMA ADPCM")
        path = tmp_path / "adpcm.wav"
        sf.write(str(path), create_test_tone(frames=2000)[0], 8000, subtype="IMA_ADPCM")

        with ReadableAudioFile(path) as f:
            assert f.file_dtype == "unknown"
            audio = f.read(100)
            f.seek(0)
            raw = f.read_raw(100)

        assert audio.shape == (1, 100)
        assert raw.dtype == np.float32
        np.testing.assert_array_equal(raw, audio)


class TestOggVorbis:
    """Tests for the lossy Ogg Vorbis format."""

    def test_quality_label(self, tmp_path):
        path = tmp_path / "tone.ogg"
        with WriteableAudioFile(path, 44100, quality="128") as f:
            assert f.quality == "128 kbps"
            f.write(create_test_tone(frames=4410))

        with ReadableAudioFile(path) as f:
            assert f.format_name == "Ogg-Vorbis file"
            assert f.channels == 1
            assert f.file_dtype == "float32"
            assert f.read(100).shape == (1, 100)

    def test_default_quality(self, tmp_path):
        with WriteableAudioFile(tmp_path / "tone.ogg", 44100) as f:
            assert f.quality == "500 kbps"

    def test_sample_rate_enforced(self, tmp_path):
        with pytest.raises(UnsupportedSampleRateError):
            WriteableAudioFile(tmp_path / "tone.ogg", 12345)

    def test_bit_depth(self, tmp_path):
        with pytest.raises(UnsupportedBitDepthError):
            WriteableAudioFile(tmp_path / "tone.ogg", 44100, bit_depth=24)


class TestFlac:
    """Tests for FLAC specifics."""

    def test_quality_label(self, tmp_path):
        with WriteableAudioFile(tmp_path / "tone.flac", 44100, quality=3) as f:
            assert f.quality == "3"

    def test_default_quality(self, tmp_path):
        with WriteableAudioFile(tmp_path / "tone.flac", 44100) as f:
            assert f.quality == "8 (Highest quality)"

    def test_32_bit_rejected(self, tmp_path):
        with pytest.raises(UnsupportedBitDepthError) as exc_info:
            WriteableAudioFile(tmp_path / "tone.flac", 44100, bit_depth=32)
        assert exc_info.value.supported == [16, 24]


class TestReadErrors:
    """Tests for opening files that cannot be read."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(AudioFileNotFoundError):
            ReadableAudioFile(tmp_path / "missing.wav")

    def test_missing_file_is_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AudioFile(str(tmp_path / "missing.flac"))

    def test_garbage_content(self, tmp_path):
        path = tmp_path / "garbage.wav"
        path.write_bytes(b"not audio at all " * 64)
        with pytest.raises(UnsupportedFormatError):
            ReadableAudioFile(path)

    def test_content_detected_despite_extension(self, tmp_path):
        wav = tmp_path / "tone.wav"
        with WriteableAudioFile(wav, 44100) as f:
            f.write(create_test_tone(frames=100))
        renamed = wav.rename(tmp_path / "tone.dat")

        with ReadableAudioFile(renamed) as f:
            assert f.format_name == "WAV file"
            assert f.frames == 100


class TestCompressionLevels:
    """Tests for quality index -> soundfile compression_level."""

    def test_flac(self):
        assert flac_compression_level(0) == 0.0
        assert flac_compression_level(len(FLAC_QUALITY_OPTIONS) - 1) == 1.0
        assert flac_compression_level(5) == pytest.approx(5 / 8)

    def test_vorbis(self):
        assert vorbis_compression_level(0) == 1.0
        assert vorbis_compression_level(len(OGG_QUALITY_OPTIONS) - 1) == 0.0

    def test_clamped(self):
        assert flac_compression_level(-3) == 0.0
        assert flac_compression_level(99) == 1.0
