import sys
import os
import hmac
import hashlib
import logging
import random
import re
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, NamedTuple
from tabulate import tabulate

logger = logging.getLogger(__name__)

FACE_COUNT = 6
MIN_DICE = 3
KEY_BYTES = 32
SAMPLE_BITS = 32
SAMPLE_SPACE = 2 ** SAMPLE_BITS
EXIT_TOKEN = "x"
HELP_TOKEN = "?"
FACE_PATTERN = re.compile(r"[+-]?[0-9]+", re.ASCII)

# ==============================================================================
# 0. Process Configuration
# ==============================================================================

class Config:
    """Process settings read from the environment."""

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING")

    @classmethod
    def configure_logging(cls) -> None:
        level = getattr(logging, cls.LOG_LEVEL.upper(), logging.WARNING)
        logging.basicConfig(
            level=level,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

# ==============================================================================
# 1. Error Handling Classes
# ==============================================================================

class ValidationError(Exception):
    """
    Custom exception for argument validation errors.
    Provides a formatted message including an example of correct usage.
    """
    _invocation_command = "python"

    @staticmethod
    def set_invocation_command(command: str):
        """Sets the command used to run the script (e.g., 'python' or 'py')."""
        ValidationError._invocation_command = command

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        script_name = sys.argv[0] if sys.argv and sys.argv[0] else 'game.py'
        example = (
            f"{ValidationError._invocation_command} {script_name} "
            f"2,2,4,4,9,9 1,1,6,6,8,8 3,3,5,5,7,7"
        )
        return f"\nArgument Error: {self.message}\n\nExample usage:\n{example}\n"

ValidationError.NOT_ENOUGH_DICE = ValidationError("Please specify at least three dice.")
ValidationError.WRONG_FACE_COUNT = ValidationError(f"Each die must have exactly {FACE_COUNT} faces.")
ValidationError.NON_INTEGER_VALUE = ValidationError("All dice faces must be integer values.")


class EntropyError(RuntimeError):
    """The secure random source could not produce bytes."""


class ExitRequested(Exception):
    """Raised when the player asks to leave at any prompt."""

# ==============================================================================
# 2. Data Structure for a Die
# ==============================================================================

class Die:
    """Six integer faces, fixed at construction. Compared by identity."""

    __slots__ = ("_faces",)

    def __init__(self, faces):
        faces = tuple(faces)
        if len(faces) != FACE_COUNT:
            raise ValidationError.WRONG_FACE_COUNT
        if any(isinstance(f, bool) or not isinstance(f, int) for f in faces):
            raise ValidationError.NON_INTEGER_VALUE
        self._faces = faces

    @classmethod
    def from_config(cls, config: str) -> "Die":
        tokens = [token.strip() for token in config.split(',')]
        if not all(FACE_PATTERN.fullmatch(token) for token in tokens):
            raise ValidationError.NON_INTEGER_VALUE
        return cls([int(token) for token in tokens])

    @property
    def faces(self) -> tuple[int, ...]:
        return self._faces

    def __str__(self) -> str:
        return "[" + ",".join(map(str, self._faces)) + "]"

    def __repr__(self) -> str:
        return f"Die({list(self._faces)!r})"

    def __len__(self) -> int:
        return len(self._faces)

# ==============================================================================
# 3. Command-Line Argument Parser
# ==============================================================================

class DiceParser:
    @staticmethod
    def parse(args: list[str]) -> list[Die]:
        if len(args) < MIN_DICE:
            raise ValidationError.NOT_ENOUGH_DICE
        return [Die.from_config(arg) for arg in args]

# ==============================================================================
# 4. Cryptographic Operations Provider
# ==============================================================================

class CryptoProvider:
    """
    Key generation, unbiased sampling and HMAC over one owned entropy source.

    The source needs ``randbytes(n)`` and ``getrandbits(k)``. It defaults to
    ``secrets.SystemRandom()``; a seeded ``random.Random`` can stand in for
    reproducible runs.
    """

    def __init__(self, entropy=None):
        self.entropy = entropy if entropy is not None else secrets.SystemRandom()

    @staticmethod
    def _read(source, *args):
        try:
            return source(*args)
        except (OSError, NotImplementedError) as e:
            raise EntropyError(f"Secure random source unavailable: {e}") from e

    def generate_key(self) -> bytes:
        return self._read(self.entropy.randbytes, KEY_BYTES)

    def _sample_word(self) -> int:
        return self._read(self.entropy.getrandbits, SAMPLE_BITS)

    def generate_secure_random(self, upper_bound: int) -> int:
        """
        Uniform integer in ``[0, upper_bound)``.

        Words at or above the largest multiple of ``upper_bound`` that fits in
        the 32-bit space are rejected and redrawn. The loop has no hard bound,
        but each pass is accepted with probability above one half.
        """
        if upper_bound < 1:
            raise ValueError(f"upper_bound must be positive, got {upper_bound}")
        limit = SAMPLE_SPACE - SAMPLE_SPACE % upper_bound
        while True:
            word = self._sample_word()
            if word < limit:
                return word % upper_bound
            logger.debug(f"Rejected sample {word} (limit {limit})")

    @staticmethod
    def calculate_hmac(key: bytes, message_int: int) -> str:
        message_bytes = str(message_int).encode('utf-8')
        h = hmac.new(key, message_bytes, hashlib.sha3_256)
        return h.hexdigest().upper()


def verify_commitment(key: bytes, value: int, digest: str) -> bool:
    """Check a revealed key and value against a previously published HMAC."""
    expected = CryptoProvider.calculate_hmac(key, value)
    return hmac.compare_digest(expected, digest.upper())

# ==============================================================================
# 5. Provably Fair Random Number Generation
# ==============================================================================

@dataclass(frozen=True)
class Commitment:
    key: bytes
    value: int
    hmac: str

    @property
    def key_hex(self) -> str:
        return self.key.hex().upper()

    def verify(self) -> bool:
        return verify_commitment(self.key, self.value, self.hmac)


class FairRandom:
    """Commit-then-reveal draws. Every draw gets its own key."""

    def __init__(self, crypto: CryptoProvider):
        self.crypto = crypto

    def draw(self, max_value: int) -> Commitment:
        if max_value < 0:
            raise ValueError(f"max_value must be >= 0, got {max_value}")
        key = self.crypto.generate_key()
        value = self.crypto.generate_secure_random(max_value + 1)
        digest = self.crypto.calculate_hmac(key, value)
        logger.debug(f"Committed draw over 0..{max_value} (HMAC={digest[:16]}...)")
        return Commitment(key=key, value=value, hmac=digest)

# ==============================================================================
# 6. Probability Calculation Logic
# ==============================================================================

class ProbabilityCalculator:
    @staticmethod
    def calculate_probabilities(die1: Die, die2: Die) -> tuple[float, float, float]:
        """Percentages of die1 wins, die2 wins and draws over every face pair."""
        wins1 = sum(1 for f1 in die1.faces for f2 in die2.faces if f1 > f2)
        wins2 = sum(1 for f1 in die1.faces for f2 in die2.faces if f1 < f2)
        total_outcomes = len(die1) * len(die2)
        draws = total_outcomes - wins1 - wins2
        return (
            round(wins1 / total_outcomes * 100, 2),
            round(wins2 / total_outcomes * 100, 2),
            round(draws / total_outcomes * 100, 2),
        )

# ==============================================================================
# 7. Help Table Generation
# ==============================================================================

class HelpTableGenerator:
    HEADERS = ["Dice 1", "Dice 2", "Dice 1 Wins %", "Dice 2 Wins %", "Draw %"]

    @staticmethod
    def generate_table(all_dice: list[Die], calculator: ProbabilityCalculator) -> str:
        table_data = []
        for die1 in all_dice:
            for die2 in all_dice:
                if die1 is die2:
                    continue
                wins1, wins2, draws = calculator.calculate_probabilities(die1, die2)
                table_data.append([str(die1), str(die2), f"{wins1:.2f}", f"{wins2:.2f}", f"{draws:.2f}"])

        intro = (
            "\n--- Help: Non-Transitive Dice ---\n"
            "Each player throws their own die; the higher face wins.\n"
            "The table below shows the probabilities for every pair of dice.\n"
        )
        return intro + tabulate(table_data, headers=HelpTableGenerator.HEADERS, tablefmt="grid")

# ==============================================================================
# 8. Input Parsing
# ==============================================================================

class ChoiceKind(Enum):
    NUMBER = "number"
    EXIT = "exit"
    HELP = "help"
    INVALID = "invalid"


class Choice(NamedTuple):
    kind: ChoiceKind
    value: int | None = None


def parse_choice(text: str, option_count: int, allow_help: bool = True) -> Choice:
    token = text.strip().lower()
    if token == EXIT_TOKEN:
        return Choice(ChoiceKind.EXIT)
    if token == HELP_TOKEN:
        return Choice(ChoiceKind.HELP) if allow_help else Choice(ChoiceKind.INVALID)
    if token.isascii() and token.isdigit():
        number = int(token)
        if 0 <= number < option_count:
            return Choice(ChoiceKind.NUMBER, number)
    return Choice(ChoiceKind.INVALID)

# ==============================================================================
# 9. Console User Interface
# ==============================================================================

class GameUI:
    def __init__(self, reader: Callable[[str], str] | None = None,
                 writer: Callable[[str], None] | None = None):
        self.reader = reader or input
        self.writer = writer or print

    def display_message(self, text: str):
        self.writer(text)

    def display_key_and_move(self, key: bytes, move: int, name: str = "My choice"):
        self.writer(f"{name}: {move} (KEY={key.hex().upper()})")

    def get_user_choice(self, prompt: str, options: list[str],
                        on_help: Callable[[], None] | None = None) -> int:
        while True:
            self.writer(f"\n{prompt}")
            for i, option in enumerate(options):
                self.writer(f" {i} - {option}")

            self.writer("\n X - Exit")
            if on_help is not None:
                self.writer(" ? - Help")

            choice = parse_choice(self.reader("Your choice: "), len(options), allow_help=on_help is not None)

            if choice.kind is ChoiceKind.EXIT:
                raise ExitRequested()
            if choice.kind is ChoiceKind.HELP:
                on_help()
                continue
            if choice.kind is ChoiceKind.NUMBER:
                return choice.value

            self.writer("Invalid choice. Please enter a valid number, '?', or 'X'.")

# ==============================================================================
# 10. Game State Machine
# ==============================================================================

class GameState(Enum):
    DETERMINING_FIRST_MOVE = "determining_first_move"
    SELECTING_DICE = "selecting_dice"
    RESOLVING_COMPUTER_THROW = "resolving_computer_throw"
    RESOLVING_USER_THROW = "resolving_user_throw"
    DONE = "done"


class Player(Enum):
    COMPUTER = "computer"
    USER = "user"


class Outcome(Enum):
    USER_WINS = "user_wins"
    COMPUTER_WINS = "computer_wins"
    DRAW = "draw"


@dataclass
class GameSession:
    available_dice: list[Die]
    state: GameState = GameState.DETERMINING_FIRST_MOVE
    first_mover: Player | None = None
    computer_die: Die | None = None
    user_die: Die | None = None
    computer_throw: int | None = None
    user_throw: int | None = None
    outcome: Outcome | None = None
    commitments: list[Commitment] = field(default_factory=list)


def combine_offsets(committed: int, addend: int, modulus: int = FACE_COUNT) -> int:
    return (committed + addend) % modulus


def decide_winner(user_throw: int, computer_throw: int) -> Outcome:
    if user_throw > computer_throw:
        return Outcome.USER_WINS
    if computer_throw > user_throw:
        return Outcome.COMPUTER_WINS
    return Outcome.DRAW


def remove_die(pool: list[Die], die: Die) -> list[Die]:
    """Return a new pool without ``die`` (matched by identity)."""
    if not any(d is die for d in pool):
        raise ValueError(f"{die} is not in the pool")
    return [d for d in pool if d is not die]


def select_computer_die(pool: list[Die], chooser) -> tuple[Die, list[Die]]:
    die = chooser.choice(pool)
    return die, remove_die(pool, die)

# ==============================================================================
# 11. Main Game Controller
# ==============================================================================

class GameController:
    def __init__(self, dice: list[Die], ui: GameUI, fair_random: FairRandom,
                 help_gen: HelpTableGenerator, chooser: random.Random | None = None,
                 *, calculator: ProbabilityCalculator | None = None):
        self.all_dice = list(dice)
        self.ui = ui
        self.fair_random = fair_random
        self.help_gen = help_gen
        self.calculator = calculator or ProbabilityCalculator()
        self.chooser = chooser or random.Random()
        self._handlers = {
            GameState.DETERMINING_FIRST_MOVE: self._determine_first_move,
            GameState.SELECTING_DICE: self._select_dice,
            GameState.RESOLVING_COMPUTER_THROW: self._resolve_computer_throw,
            GameState.RESOLVING_USER_THROW: self._resolve_user_throw,
        }

    def play(self) -> GameSession:
        """Run one match to completion. ExitRequested propagates to the caller."""
        session = GameSession(available_dice=list(self.all_dice))
        while session.state is not GameState.DONE:
            handler = self._handlers[session.state]
            next_state = handler(session)
            logger.debug(f"{session.state.name} -> {next_state.name}")
            session.state = next_state
        return session

    def _show_help(self):
        self.ui.display_message(self.help_gen.generate_table(self.all_dice, self.calculator))

    def _determine_first_move(self, session: GameSession) -> GameState:
        self.ui.display_message("\nLet's determine who makes the first move.")
        commitment = self.fair_random.draw(1)
        session.commitments.append(commitment)
        self.ui.display_message(f"I selected a random value in the range 0..1 (HMAC={commitment.hmac}).")

        guess = self.ui.get_user_choice("Try to guess my selection.", ["0", "1"], on_help=self._show_help)
        self.ui.display_key_and_move(commitment.key, commitment.value, name="My selection")

        # A correct guess hands the first move to the computer.
        session.first_mover = Player.COMPUTER if guess == commitment.value else Player.USER
        return GameState.SELECTING_DICE

    def _select_dice(self, session: GameSession) -> GameState:
        pool = session.available_dice
        if session.first_mover is Player.COMPUTER:
            computer_die, pool = select_computer_die(pool, self.chooser)
            self.ui.display_message(f"I make the first move and choose the {computer_die} dice.")
            user_die, pool = self._select_user_die(pool)
            self.ui.display_message(f"You choose the {user_die} dice.")
        else:
            self.ui.display_message("You make the first move.")
            user_die, pool = self._select_user_die(pool)
            self.ui.display_message(f"You choose the {user_die} dice.")
            computer_die, pool = select_computer_die(pool, self.chooser)
            self.ui.display_message(f"I choose the {computer_die} dice.")

        session.computer_die = computer_die
        session.user_die = user_die
        session.available_dice = pool
        logger.info(f"Dice assigned: computer={computer_die} user={user_die}")
        return GameState.RESOLVING_COMPUTER_THROW

    def _select_user_die(self, pool: list[Die]) -> tuple[Die, list[Die]]:
        options = [str(d) for d in pool]
        index = self.ui.get_user_choice("Choose your dice:", options, on_help=self._show_help)
        die = pool[index]
        return die, remove_die(pool, die)

    def _resolve_computer_throw(self, session: GameSession) -> GameState:
        session.computer_throw = self._make_throw(session, session.computer_die, "my")
        return GameState.RESOLVING_USER_THROW

    def _resolve_user_throw(self, session: GameSession) -> GameState:
        session.user_throw = self._make_throw(session, session.user_die, "your")
        session.outcome = decide_winner(session.user_throw, session.computer_throw)
        self._announce(session)
        return GameState.DONE

    def _make_throw(self, session: GameSession, die: Die, label: str) -> int:
        max_index = len(die) - 1
        self.ui.display_message(f"\nIt's time for {label} throw.")
        commitment = self.fair_random.draw(max_index)
        session.commitments.append(commitment)
        self.ui.display_message(f"I selected a random value in the range 0..{max_index} (HMAC={commitment.hmac}).")

        options = [str(i) for i in range(len(die))]
        addend = self.ui.get_user_choice(f"Add your number modulo {len(die)}.", options, on_help=self._show_help)
        self.ui.display_key_and_move(commitment.key, commitment.value, name="My number")

        index = combine_offsets(commitment.value, addend, len(die))
        self.ui.display_message(f"The result is {commitment.value} + {addend} = {index} (mod {len(die)}).")
        value = die.faces[index]
        self.ui.display_message(f"{label.capitalize()} throw is {value}.")
        return value

    def _announce(self, session: GameSession):
        user, computer = session.user_throw, session.computer_throw
        if session.outcome is Outcome.USER_WINS:
            self.ui.display_message(f"You win! ({user} > {computer})")
        elif session.outcome is Outcome.COMPUTER_WINS:
            self.ui.display_message(f"I win! ({user} < {computer})")
        else:
            self.ui.display_message(f"It's a draw! ({user} = {computer})")

# ==============================================================================
# 12. Main Execution Block
# ==============================================================================

def main(argv: list[str] | None = None) -> int:
    Config.configure_logging()

    # Dynamically determine the command used to invoke the script
    if 'py.exe' in sys.executable.lower():
        ValidationError.set_invocation_command('py')
    else:
        ValidationError.set_invocation_command('python')

    args = sys.argv[1:] if argv is None else argv
    try:
        dice = DiceParser.parse(args)
    except ValidationError as e:
        print(e, file=sys.stderr)
        return 1

    ui = GameUI()
    fair_random = FairRandom(CryptoProvider())
    help_gen = HelpTableGenerator()
    controller = GameController(dice, ui, fair_random, help_gen)

    try:
        controller.play()
    except ExitRequested:
        print("Exiting game. Goodbye!")
    except (KeyboardInterrupt, EOFError):
        print("\nGame interrupted. Goodbye!")
    except EntropyError as e:
        print(f"Fatal: {e}", file=sys.stderr)
        return 2
    return 0

if __name__ == "__main__":
    sys.exit(main())
