from pydantic import BaseModel, Field

from helmsman import *


class Message(BaseModel):
    to: str | list[str] = Field(description="recipient addresses")
    subject: str = Field(description="subject line")
    verbose: bool = False


@command(descr="mailbox tools")
def mail():
    pass


@mail.command(descr="deliver a message", examples=[
    ("send to two recipients", ["--to=a@example.com", "--to=b@example.com", "--subject=hi"]),
])
def send(options: Message):
    if options.verbose:
        print("sending %r to %s" % (options.subject, ", ".join(recipients(options.to))))


def recipients(value):
    return value if isinstance(value, list) else [value]


if __name__ == '__main__':
    raise SystemExit(run(Registry([mail], "main", version=__import__("helmsman").__version__)))
