from askvid.context import VideoContextHolder
from askvid.models import VideoContext


def test_holder_starts_empty():
    assert VideoContextHolder().current.is_empty


def test_set_from_transcript_replaces_context(segments):
    holder = VideoContextHolder()
    holder.set(VideoContext(transcript="old", title="Old"))

    holder.set_from_transcript("new text", segments, title="New", url="https://youtu.be/x")

    assert holder.current.title == "New"
    assert holder.current.segments == segments
    assert holder.current.url == "https://youtu.be/x"


def test_clear(context):
    holder = VideoContextHolder()
    holder.set(context)

    holder.clear()

    assert holder.current == VideoContext()
