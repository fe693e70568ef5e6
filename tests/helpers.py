from botocore.exceptions import ClientError


def client_error(code, operation="Operation"):
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised"}}, operation)


def scripted(*answers):
    """Prompt function that replays answers in order and records the prompts."""
    replies = iter(answers)
    prompts = []

    def ask(prompt):
        prompts.append(prompt)
        return next(replies)

    ask.prompts = prompts
    return ask
