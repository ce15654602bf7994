from pollcircle.feeds import ChangeFeed


def _snap(total, status="active", comments=0, poll_id="p1"):
    return {"id": poll_id, "status": status, "total_votes": total, "comment_count": comments}


def test_handlers_and_subscribers_receive_changes():
    feed = ChangeFeed()
    changes, views = [], []
    feed.register(lambda before, after: changes.append((before["total_votes"], after["total_votes"])))
    feed.subscribe_poll("p1", lambda snap: views.append(snap["total_votes"]))

    assert feed.publish_poll_change(_snap(0), _snap(1))
    assert changes == [(0, 1)]
    assert views == [1]


def test_stale_snapshot_is_kept_from_live_views_only():
    feed = ChangeFeed()
    views, changes = [], []
    feed.register(lambda before, after: changes.append(after["total_votes"]))
    feed.subscribe_poll("p1", lambda snap: views.append((snap["status"], snap["total_votes"])))

    feed.publish_poll_change(_snap(2), _snap(3))
    feed.publish_poll_change(_snap(3), _snap(3, status="resolved"))
    assert not feed.publish_poll_change(_snap(1), _snap(2))
    assert views == [("active", 3), ("resolved", 3)]
    assert changes == [3, 3, 2]


def test_subscriptions_are_per_poll_and_cancellable():
    feed = ChangeFeed()
    views = []
    sub = feed.subscribe_poll("p1", views.append)
    feed.subscribe_poll("p2", lambda snap: views.append("wrong poll"))

    feed.publish_poll_change(_snap(0), _snap(1))
    sub.cancel()
    feed.publish_poll_change(_snap(1), _snap(2))
    assert [v["total_votes"] for v in views] == [1]


def test_failing_consumer_does_not_affect_others():
    feed = ChangeFeed()
    seen = []

    def boom(before, after):
        raise RuntimeError("handler bug")

    feed.register(boom)
    feed.register(lambda before, after: seen.append(after["total_votes"]))
    feed.subscribe_poll("p1", lambda snap: 1 / 0)

    assert feed.publish_poll_change(_snap(0), _snap(1))
    assert seen == [1]


def test_forget_resets_ordering():
    feed = ChangeFeed()
    feed.publish_poll_change(_snap(4), _snap(5))
    feed.forget("p1")
    assert feed.publish_poll_change(_snap(0), _snap(1))


def test_comment_list_subscription():
    feed = ChangeFeed()
    lists = []
    feed.subscribe_comments("p1", lists.append)
    feed.publish_comments("p1", [{"content": "hi"}])
    feed.publish_comments("p2", [{"content": "other"}])
    assert lists == [[{"content": "hi"}]]


def test_forget_releases_per_poll_state():
    feed = ChangeFeed()
    feed.subscribe_poll("p1", lambda snap: None)
    feed.subscribe_comments("p1", lambda comments: None)
    feed.publish_poll_change(_snap(0), _snap(1))
    feed.publish_comments("p1", [])

    feed.forget("p1")
    for topic in (("poll", "p1"), ("comments", "p1")):
        assert topic not in feed._locks
        assert topic not in feed._subscribers
