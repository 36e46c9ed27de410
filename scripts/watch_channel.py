import asyncio

from streamwatch import DelayPolicy, Duration, ThrottlePolicy, Watcher
from streamwatch.config import Config
from streamwatch.twitch_api import TwitchAPI


async def main():
    cfg = Config.from_env()
    if not cfg.channel:
        print("TWITCH_CHANNEL is not set")
        return

    api = TwitchAPI(cfg.client_id, cfg.client_secret)
    watcher = Watcher(
        api.stream_fetcher(user_login=cfg.channel), logger=cfg.log_enabled
    )

    # announce go-live, but not more than once every 6 hours and not for a
    # stream that was already live when we started
    watcher.on(
        "online",
        lambda stream: print("live:", stream.get("title"), "-", stream.get("game_name")),
        throttle=ThrottlePolicy(
            at_most_once_per=Duration.hour(6), notify_on_initial=False
        ),
    )
    # only treat the stream as ended once it has been offline for 5 minutes
    watcher.on(
        "offline",
        lambda _: print("stream ended"),
        delay=DelayPolicy(wait_at_least=Duration.minute(5), no_delay_on_initial=True),
    )

    stop = watcher.poll(every=cfg.poll_every_ms, immediately=cfg.poll_immediately)
    try:
        await asyncio.Event().wait()
    finally:
        stop()
        watcher.destroy()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
