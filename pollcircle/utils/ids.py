import uuid
from typing import Callable

# Any zero-arg callable returning a fresh, globally unique string id.
IdGenerator = Callable[[], str]


def new_id() -> str:
    return str(uuid.uuid4())
