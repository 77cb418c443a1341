import pytest

from mediakeeper.media.handle import MediaEvent, PlaybackDeniedError
from mediakeeper.media.simulated import SimulatedVideoElement


@pytest.mark.asyncio
async def test_play_and_pause_emit_events():
    element = SimulatedVideoElement("a.mp4")
    seen = []
    element.add_listener(MediaEvent.PLAYED, seen.append)
    element.add_listener(MediaEvent.PAUSED, seen.append)

    await element.play()
    element.pause()
    element.pause()

    assert seen == [MediaEvent.PLAYED, MediaEvent.PAUSED]
    assert element.paused


@pytest.mark.asyncio
async def test_denied_play_raises():
    element = SimulatedVideoElement("a.mp4", autoplay_allowed=False)
    with pytest.raises(PlaybackDeniedError):
        await element.play()
    assert element.paused


def test_release_drops_listeners():
    element = SimulatedVideoElement("a.mp4")
    element.add_listener(MediaEvent.ENDED, lambda event: None)
    element.add_listener(MediaEvent.ERRORED, lambda event: None)

    element.release()

    assert element.listener_count == 0


def test_source_detach_and_attach():
    element = SimulatedVideoElement("a.mp4")
    element.detach_source()
    element.load()
    element.attach_source("a.mp4")

    assert element.src == "a.mp4"
    assert element.history == ["detach", "load", "attach:a.mp4"]
