import asyncio

from streamwatch.config import Config
from streamwatch.twitch_api import TwitchAPI


async def main():
    cfg = Config.from_env()
    print("Checking environment variables...")
    print("TWITCH_CLIENT_ID present:", bool(cfg.client_id))
    print("TWITCH_CLIENT_SECRET present:", bool(cfg.client_secret))
    print("TWITCH_CHANNEL:", cfg.channel)

    api = TwitchAPI(cfg.client_id, cfg.client_secret)

    try:
        await api._acquire_app_token()
        print("Acquired app token:", bool(api._access_token))
    except Exception as exc:
        print("Token acquisition failed:", repr(exc))
        return

    channel = cfg.channel or "storygirl"
    try:
        user = await api.get_user_by_login(channel)
        if not user:
            print("User lookup: not found for", channel)
            return
        print("User lookup succeeded: id=", user.get("id"), "login=", user.get("login"))

        stream = await api.get_stream(user_id=user.get("id"))
        if stream:
            print("Stream is live:", stream.get("title"))
        else:
            print("Stream is offline")
    except Exception as exc:
        print("Helix request failed:", repr(exc))


if __name__ == "__main__":
    asyncio.run(main())
