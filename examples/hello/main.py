"""Hello extension entrypoint."""


async def greeting(args):
    name = args.get("name") or "world"
    return {"message": f"Hello, {name}!"}


tools = {"greeting": greeting}
