import itertools

import game


class ScriptedEntropy:
    """Entropy source that replays fixed 32-bit words and hands out distinct keys."""

    def __init__(self, words):
        self._words = iter(words)
        self._counter = itertools.count(1)
        self.word_calls = 0

    def getrandbits(self, k):
        self.word_calls += 1
        return next(self._words)

    def randbytes(self, n):
        return bytes([next(self._counter) % 256]) * n


class BrokenEntropy:
    def getrandbits(self, k):
        raise OSError("no entropy")

    def randbytes(self, n):
        raise OSError("no entropy")


class FirstChooser:
    def choice(self, seq):
        return seq[0]


class ScriptedIO:
    """Feeds scripted answers to GameUI and records everything in order."""

    def __init__(self, answers):
        self._answers = iter(answers)
        self.events = []

    def read(self, prompt):
        answer = next(self._answers)
        self.events.append(("read", answer))
        return answer

    def write(self, text):
        self.events.append(("write", text))

    @property
    def lines(self):
        return [text for kind, text in self.events if kind == "write"]

    def ui(self):
        return game.GameUI(reader=self.read, writer=self.write)


def make_dice(*configs):
    return [game.Die.from_config(c) for c in configs]


DEFAULT_CONFIGS = ("1,2,3,4,5,6", "2,2,4,4,9,9", "6,8,1,1,8,6")
