import pytest

from hullsearch.enumerator import (ChannelClosed, Extraction, ExtractionResult, PathChannel,
                                   extract_all_paths_concurrently, extract_limited_paths_concurrently,
                                   iter_all_paths)
from hullsearch.path import Path


def as_tuple(bits):
    return tuple(int(b) for b in bits)


def test_channel_fifo():
    channel = PathChannel(4)
    channel.send(Path([1]))
    channel.send(Path([0]))
    channel.finish()
    assert channel.recv() == Path([1])
    assert list(channel) == [Path([0])]
    assert channel.recv() is None


def test_closed_channel_rejects_send():
    channel = PathChannel(1)
    channel.send(Path([1]))
    channel.close()
    assert channel.closed
    with pytest.raises(ChannelClosed):
        channel.send(Path([0]))


def test_iter_all_paths(weight_shard):
    found = [as_tuple(bits) for bits in iter_all_paths(weight_shard, 0, 6)]
    assert sorted(found) == sorted(weight_shard.iter_paths())
    assert found[0] == (0, 0, 0, 0, 0, 0)


def test_extract_all_paths(weight_shard):
    extraction = extract_all_paths_concurrently(weight_shard, 0, 6, bound=2)
    found = [as_tuple(p) for p in extraction.channel]
    assert extraction.join() is ExtractionResult.EXHAUSTED
    assert sorted(found) == sorted(weight_shard.iter_paths())
    assert extraction.count == len(found)


def test_extract_with_limit(weight_shard):
    extraction = extract_all_paths_concurrently(weight_shard, 0, 6, upper_limit=3)
    found = list(extraction.channel)
    assert extraction.join() is ExtractionResult.LIMIT_REACHED
    assert len(found) == 3


def test_receiver_closes_channel(weight_shard):
    extraction = extract_all_paths_concurrently(weight_shard, 0, 6, bound=1)
    first = extraction.channel.recv()
    extraction.channel.close()
    assert first is not None
    assert extraction.join() is ExtractionResult.LIMIT_REACHED


def test_extraction_error_is_raised():
    def fail(extraction):
        raise RuntimeError("broken")

    extraction = Extraction(PathChannel(), fail).start()
    assert extraction.channel.recv() is None
    with pytest.raises(RuntimeError):
        extraction.join()


def test_all_inner_paths(sess_toy):
    _, _, master, meta, best, _, _, _ = sess_toy
    extraction = extract_all_paths_concurrently(master, meta.alpha_depth, meta.beta_depth)
    found = list(extraction.channel)
    extraction.join()
    assert len(found) == best.sum_inner_paths()[0]
    assert all(len(p) == meta.beta_depth - meta.alpha_depth for p in found)
    assert len(set(found)) == len(found)


@pytest.mark.parametrize("semi", [False, True])
def test_targeted_inner_paths(sess_toy, semi):
    _, _, master, meta, best, _, _, _ = sess_toy
    extraction = extract_limited_paths_concurrently(master, meta, best, semi=semi)
    found = list(extraction.channel)
    assert extraction.join() is ExtractionResult.EXHAUSTED
    assert len(found) == sum(best.sub_dist.values())
    assert len(set(found)) == len(found)


def test_targeted_inner_paths_limit(sess_toy):
    _, _, master, meta, best, _, _, _ = sess_toy
    extraction = extract_limited_paths_concurrently(master, meta, best, upper_limit=1)
    found = list(extraction.channel)
    more = sum(best.sub_dist.values()) > 1
    expected = ExtractionResult.LIMIT_REACHED if more else ExtractionResult.EXHAUSTED
    assert len(found) == 1
    assert extraction.join() is expected


@pytest.mark.parametrize("semi", [False, True])
def test_limit_equal_to_path_count_is_exhausted(sess_toy, semi):
    _, _, master, meta, best, _, _, _ = sess_toy
    total = sum(best.sub_dist.values())
    extraction = extract_limited_paths_concurrently(master, meta, best, semi=semi, upper_limit=total)
    found = list(extraction.channel)
    assert extraction.join() is ExtractionResult.EXHAUSTED
    assert len(found) == total


def test_blocked_sender_sees_close():
    channel = PathChannel(1)

    def fill(extraction):
        for i in range(10):
            extraction.channel.send(Path([i % 2]))
            extraction.count += 1
        return ExtractionResult.EXHAUSTED

    extraction = Extraction(channel, fill).start()
    assert channel.recv() == Path([0])
    channel.close()
    assert extraction.join() is ExtractionResult.LIMIT_REACHED
    assert extraction.count < 10
