import game
from common import make_dice, DEFAULT_CONFIGS


class TestProbabilityCalculator:
    def test_known_pair(self):
        a, b = make_dice("2,2,4,4,9,9", "6,8,1,1,8,6")
        wins_a, wins_b, draws = game.ProbabilityCalculator.calculate_probabilities(a, b)
        assert wins_a == 55.56
        assert wins_b == 44.44
        assert draws == 0.0
        assert round(wins_a + wins_b + draws, 2) == 100.00

    def test_identical_faces_draw(self):
        a, b = make_dice("3,3,3,3,3,3", "3,3,3,3,3,3")
        assert game.ProbabilityCalculator.calculate_probabilities(a, b) == (0.0, 0.0, 100.0)

    def test_symmetry(self):
        a, b = make_dice("1,2,3,4,5,6", "6,8,1,1,8,6")
        ab = game.ProbabilityCalculator.calculate_probabilities(a, b)
        ba = game.ProbabilityCalculator.calculate_probabilities(b, a)
        assert ab == (ba[1], ba[0], ba[2])


class TestHelpTable:
    def test_every_ordered_pair(self):
        dice = make_dice(*DEFAULT_CONFIGS)
        table = game.HelpTableGenerator.generate_table(dice, game.ProbabilityCalculator())
        for header in game.HelpTableGenerator.HEADERS:
            assert header in table
        assert table.count("| [2,2,4,4,9,9] | [6,8,1,1,8,6] |") == 1
        assert table.count("| [6,8,1,1,8,6] | [2,2,4,4,9,9] |") == 1
        assert "| [1,2,3,4,5,6] | [1,2,3,4,5,6] |" not in table
        assert "55.56" in table and "44.44" in table
