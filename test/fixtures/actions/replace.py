async def action(arguments, environment, run_super):
    return "replaced"
