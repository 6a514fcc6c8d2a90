"""
Tests for the temperament algebra engine.

Reference tunings are the Tenney-Euclidean values with pure equaves.
"""

import math

import numpy as np
import pytest

import consts
import temperament as temperament_module
from algebra import AlgebraProvider
from subgroup import Subgroup
from temperament import FreeTemperament, Temperament
from utils import RescaleError, SearchExhaustedError, SubgroupError

EDO12 = [12, 19, 28]
EDO19 = [19, 30, 44]


@pytest.fixture
def meantone():
    result = Temperament.from_vals([EDO12, EDO19], 5)
    result.canonize()
    return result


@pytest.fixture
def augmented():
    result = Temperament.from_commas(['128/125'], 5)
    result.canonize()
    return result


@pytest.fixture
def miracle():
    result = Temperament.from_commas(['225/224', '1029/1024'], 7)
    result.canonize()
    return result


class TestConstruction:
    """from_vals, from_commas and canonical forms."""

    def test_meantone_from_vals_and_commas(self, meantone):
        """Both constructions land on the same canonical wedgie."""
        from_commas = Temperament.from_commas(['81/80'], 5)
        from_commas.canonize()
        assert meantone.equals(from_commas)
        assert meantone.wedgie() == [1, 4, 4]
        assert str(meantone) == '<<1 4 4]]'
        assert meantone.rank == 2
        assert meantone.corank == 1

    def test_wart_tokens(self, meantone):
        """Vals can be given as numbers of divisions."""
        from_tokens = Temperament.from_vals(['12', 19], 5)
        assert from_tokens.wedgie() == [-1, -4, -4]
        assert from_tokens.canonized().equals(meantone)
        # canonized() leaves the original alone
        assert from_tokens.wedgie() == [-1, -4, -4]

    def test_canonize_idempotent(self, meantone):
        """Canonizing twice changes nothing."""
        twice = meantone.canonized().canonized()
        assert twice.equals(meantone)

    def test_redundant_val_skipped(self):
        """31edo is the sum of 12 and 19."""
        result = Temperament.from_vals([12, 19, 31], 5)
        assert result.rank == 2
        assert Temperament.from_vals([12, 12], 5).rank == 1

    def test_redundant_comma_skipped(self):
        """A power of a comma adds nothing."""
        result = Temperament.from_commas(['81/80', '6561/6400'], 5)
        assert result.rank == 2

    def test_rank_one_str(self):
        """Vals print with single brackets."""
        assert str(Temperament.from_vals([12], 5)) == '<12 19 28]'

    def test_miracle_wedgie(self, miracle):
        """Miracle is 10 & 31."""
        assert miracle.wedgie() == [6, -7, -2, -25, -20, 15]
        assert miracle.equals(Temperament.from_vals([10, 31], 7).canonized())

    def test_inferred_subgroup(self):
        """Without a subgroup the commas pick the primes."""
        arcturus = Temperament.from_commas(['15625/15309'])
        assert arcturus.subgroup == Subgroup('3.5.7')
        assert arcturus.rank == 2

    def test_monzo_commas(self, meantone):
        """Commas as monzos."""
        result = Temperament.from_commas([[-4, 4, -1]], 5)
        assert result.canonized().equals(meantone)

    def test_subgroup_mismatch_not_equal(self, meantone):
        """Equality includes the subgroup."""
        other = Temperament.from_vals([[12, 19, 28], [19, 30, 44]], '2.3.5')
        assert other.canonized().equals(meantone)
        assert not Temperament.from_vals([[12, 19, 28], [19, 30, 44]], '2.3.7').canonized().equals(meantone)

    def test_flavours_not_equal(self, meantone):
        """Subgroup and free temperaments never compare equal."""
        free = FreeTemperament.from_vals([12, 19], consts.LOG_PRIMES[:3]).canonized()
        assert free.wedgie() == meantone.wedgie()
        assert not meantone.equals(free)
        assert not free.equals(meantone)

    def test_tempers_out(self, miracle):
        """Kernel membership."""
        assert miracle.tempers_out('225/224')
        assert miracle.tempers_out([-10, 1, 0, 3])
        assert not miracle.tempers_out('81/80')

    def test_nil_has_no_rank(self):
        """The zero multivector has no rank."""
        algebra = AlgebraProvider().get(3, 'int')
        with pytest.raises(ValueError):
            Temperament(algebra, algebra.zero(), 5).rank

    def test_provider_injection(self):
        """Algebras come from the given provider."""
        provider = AlgebraProvider()
        result = Temperament.from_vals([12, 19], 5, provider=provider)
        assert result.algebra is provider.get(3, 'int')
        temperament_module.clear_cache()
        assert Temperament.from_vals([12, 19], 5).rank == 2


class TestRankZero:
    """Zero vals and zero commas are different temperaments."""

    def test_no_vals(self):
        """Everything maps to zero."""
        nothing = Temperament.from_vals([], 5)
        assert nothing.rank == 0
        assert nothing.get_mapping() == pytest.approx([0, 0, 0])
        assert not nothing.is_recoverable()
        assert nothing.val_factorize() == []
        with pytest.raises(ValueError):
            nothing.period_generator()

    def test_no_commas(self):
        """Plain just intonation."""
        just = Temperament.from_commas([], 5)
        assert just.rank == 3
        assert just.get_mapping() == pytest.approx(consts.PRIME_CENTS[:3])
        assert just.comma_factorize() == []


class TestTuning:
    """TE and CTE mappings."""

    def test_meantone_te(self, meantone):
        """POTE meantone."""
        assert meantone.tune('81/80') == pytest.approx(0, abs=1e-6)
        assert meantone.tune(2) == pytest.approx(1200)
        assert meantone.tune('3/2') == pytest.approx(696.239, abs=5e-3)

    def test_meantone_te_from_commas(self):
        """Same tuning from the comma side."""
        from_commas = Temperament.from_commas(['81/80'], 5)
        assert from_commas.tune((3, 2)) == pytest.approx(696.239, abs=5e-3)

    def test_tempered_equaves(self, meantone):
        """The octave moves but the comma stays tempered out."""
        mapping = meantone.get_mapping(temper_equaves=True)
        assert 1200 < mapping[0] < 1203
        assert sum(m * c for m, c in zip(mapping, [-4, 4, -1])) == pytest.approx(0, abs=1e-6)

    def test_units(self, meantone):
        """Mappings in other units."""
        assert meantone.get_mapping('nats')[0] == pytest.approx(math.log(2))
        assert meantone.get_mapping('semitones')[0] == pytest.approx(12)
        assert meantone.tune('3/2', 'ratio') == pytest.approx(2 ** (696.239 / 1200), abs=1e-5)

    def test_miracle(self, miracle):
        """Both secors are the same generator."""
        assert miracle.tune(2) == pytest.approx(1200)
        assert miracle.tune('16/15') == pytest.approx(116.675, abs=5e-3)
        assert miracle.tune('15/14') == pytest.approx(116.675, abs=5e-3)

    def test_orgone(self):
        """Orgone in 2.7.11."""
        orgone = Temperament.from_commas(['65536/65219'], '2.7.11')
        assert orgone.tune('65536/65219') == pytest.approx(0, abs=1e-6)
        assert orgone.tune('77/64') == pytest.approx(323.372, abs=5e-3)

    def test_blackwood_2_3(self):
        """Blackwood in 2.3 is 5edo."""
        blackwood = Temperament.from_commas(['256/243'])
        assert len(blackwood.get_mapping()) == 2
        assert blackwood.tune('3/2') == pytest.approx(720)

    def test_blackwood_2_3_5(self):
        """Blackwood with a free prime 5."""
        blackwood = Temperament.from_commas(['256/243'], 5)
        assert len(blackwood.get_mapping()) == 3
        assert blackwood.tune('3/2') == pytest.approx(720)
        assert blackwood.tune('5/4') == pytest.approx(399.594, abs=5e-3)

    def test_arcturus(self):
        """Tritave equivalent arcturus in 3.5.7."""
        arcturus = Temperament.from_commas(['15625/15309'])
        assert len(arcturus.get_mapping()) == 3
        assert arcturus.tune('5/3') == pytest.approx(878.042, abs=5e-3)

    def test_prime_mapping(self):
        """Semaphore mapping over 2.3.5.7 keeps 5 pure."""
        semaphore = Temperament.from_commas(['49/48'], '2.3.7')
        mapping = semaphore.get_mapping(prime_mapping=True)
        assert len(mapping) == 4
        assert mapping[2] == pytest.approx(consts.PRIME_CENTS[2])
        assert mapping[3] == pytest.approx(semaphore.tune('7'))
        assert semaphore.tune([-2, 0, 0, 1], prime_mapping=True) == pytest.approx(semaphore.tune('7/4'))

    def test_cte_pure_octave(self, meantone):
        """CTE with a pure octave solves the constrained least squares problem."""
        jip = np.array(Subgroup(5).jip('nats'))
        weights = 1 / jip
        vals = np.array([EDO12, EDO19], dtype=float)
        weighted = vals * weights
        octave = np.array([1.0, 0.0, 0.0])

        system = np.zeros((3, 3))
        system[:2, :2] = weighted @ weighted.T
        system[:2, 2] = vals @ octave
        system[2, :2] = vals @ octave
        rhs = np.concatenate([weighted @ (jip * weights), [jip @ octave]])
        coefficients = np.linalg.solve(system, rhs)[:2]
        expected = coefficients @ vals

        mapping = meantone.get_mapping('nats', temper_equaves=True, constraints=['2'])
        assert mapping == pytest.approx(list(expected), abs=1e-9)
        assert mapping[0] == pytest.approx(math.log(2))

    def test_cte_quarter_comma(self, meantone):
        """Pure octaves and major thirds give quarter-comma meantone."""
        fifth = meantone.tune('3/2', constraints=[2, '5/4'])
        assert fifth == pytest.approx(1200 * math.log2(5) / 4, abs=1e-6)
        assert meantone.tune('5/4', constraints=[2, '5/4']) == pytest.approx(1200 * math.log2(1.25), abs=1e-6)

    def test_cte_contradiction(self, meantone):
        """A tempered out comma cannot be pure."""
        with pytest.raises(ValueError):
            meantone.get_mapping(constraints=['81/80'])


class TestPeriodGenerator:
    """Period and generator decomposition."""

    def test_meantone(self, meantone):
        """Octave period and fourth generator."""
        assert meantone.divisions_generator() == (1, [[0, 1, 0]])
        period, generator = meantone.period_generator()
        assert period == pytest.approx(1200)
        assert generator == pytest.approx(503.761, abs=5e-3)

    def test_blackwood(self):
        """Five periods per octave."""
        blackwood = Temperament.from_commas(['256/243'], 5).canonized()
        period, generator = blackwood.period_generator()
        assert period == pytest.approx(240)
        assert generator == pytest.approx(80.406, abs=5e-3)

    def test_rank_one(self):
        """An equal temperament has one step as its period."""
        assert Temperament.from_vals([12], 5).period_generator() == pytest.approx([100])
        assert Temperament.from_commas(['256/243']).canonized().period_generator() == pytest.approx([240])

    def test_rank_three(self):
        """Marvel needs two generators."""
        marvel = Temperament.from_commas(['225/224'], 7).canonized()
        num_periods, generators = marvel.divisions_generator()
        assert num_periods == 1
        assert len(generators) == 2
        result = marvel.period_generator()
        assert len(result) == 3
        assert result[0] == pytest.approx(1200)
        for generator in result[1:]:
            assert 0 <= generator <= 600

    def test_generator_search_stuck(self):
        """Every basis direction overshoots the period count."""
        # Equave projection 6e12 + 10e13 + 15e23: contractions have gcd 2, 3 and 5
        stuck = Temperament.from_commas([[0, 15, -10, 6]], 7).canonized()
        assert stuck.rank == 3
        with pytest.raises(SearchExhaustedError) as info:
            stuck.divisions_generator()
        assert info.value.bound == 4

    def test_tempered_equave(self):
        """No periods when the equave vanishes."""
        with pytest.raises(ValueError):
            Temperament.from_commas(['2'], 5).canonized().divisions_generator()

    def test_ji_mapping(self, meantone):
        """Meantone in octaves and fifths."""
        assert meantone.ji_mapping([[1, 0, 0], [-1, 1, 0]]) == [[1, 1, 0], [0, 1, 4]]
        with pytest.raises(ValueError):
            meantone.ji_mapping([[1, 0, 0]])

    def test_steps(self):
        """Step counts of a scale in 17edo and 17c."""
        scale = ['6/5', '7/5', '8/5', '9/5', '10/5']
        edo17 = Temperament.from_vals([17], 7)
        assert [edo17.steps(r) for r in scale] == [5, 9, 12, 15, 17]
        edo17c = Temperament.from_vals(['17c'], 7)
        assert [edo17c.steps(r) for r in scale] == [4, 8, 11, 14, 17]


class TestPrefix:
    """Rank prefix compression."""

    @pytest.mark.parametrize("commas, subgroup, prefix", [
        (['81/80'], 5, [1, 4]),
        (['128/125'], 5, [3, 0]),
        (['49/48'], '2.3.7', [2, 1]),
        (['225/224', '1029/1024'], 7, [6, -7, -2]),
    ])
    def test_recoverable(self, commas, subgroup, prefix):
        """Meantone, augmented, semaphore and miracle survive compression."""
        result = Temperament.from_commas(commas, subgroup).canonized()
        assert result.rank_prefix() == prefix
        assert result.is_recoverable()
        rebuilt = Temperament.from_prefix(result.rank, prefix, subgroup)
        rebuilt.canonize()
        assert rebuilt.equals(result)

    def test_from_prefix_meantone(self, meantone):
        """<<1 4 4]] from [1, 4]."""
        rebuilt = Temperament.from_prefix(2, [1, 4], 5).canonized()
        assert rebuilt.equals(meantone)

    def test_invalid_rank(self):
        """Rank must lie between 1 and the dimension."""
        with pytest.raises(ValueError):
            Temperament.from_prefix(0, [], 5)
        with pytest.raises(ValueError):
            Temperament.from_prefix(4, [1], 5)
        with pytest.raises(ValueError):
            Temperament.from_prefix(2, [1, 2, 3, 4], 5)


class TestJoinMeet:
    """Val join/meet and their kernel duals."""

    def test_val_join(self, meantone):
        """12 & 19 is meantone."""
        edo12 = Temperament.from_vals([12], 5)
        edo19 = Temperament.from_vals([19], 5)
        joined = edo12.val_join(edo19)
        joined.canonize()
        assert joined.equals(meantone)
        assert edo12.wedgie() == EDO12
        assert edo12.kernel_meet(edo19).canonized().equals(meantone)

    def test_val_meet(self, meantone, augmented):
        """Meantone and augmented share 12edo."""
        met = meantone.val_meet(augmented)
        met.canonize()
        assert met.wedgie() == EDO12
        assert meantone.kernel_join(augmented).canonized().equals(met)
        assert meantone.wedgie() == [1, 4, 4]

    def test_rescale_error(self, meantone, augmented):
        """12edo needs a multiplier of 12."""
        with pytest.raises(RescaleError):
            meantone.val_meet(augmented, persistence=1)

    def test_incompatible(self, meantone):
        """Different subgroups do not combine."""
        with pytest.raises(ValueError):
            meantone.val_join(Temperament.from_vals([12], 7))
        with pytest.raises(ValueError):
            meantone.val_join(Temperament.from_vals([12], '2.3.7'))


class TestFactorization:
    """Val and comma searches."""

    def test_patent_vals(self, meantone):
        """First two patent vals supporting meantone."""
        assert meantone.val_factorize('patent') == [[5, 8, 12], [7, 11, 16]]

    @pytest.mark.parametrize("strategy", ["GPV", "mapping", "GM", "warts"])
    def test_strategies(self, meantone, strategy):
        """Every strategy rebuilds meantone."""
        vals = meantone.val_factorize(strategy)
        assert len(vals) == 2
        assert Temperament.from_vals(vals, 5).canonized().equals(meantone)

    def test_exhausted(self, meantone):
        """Too few divisions."""
        with pytest.raises(SearchExhaustedError) as info:
            meantone.val_factorize('patent', max_divisions=6)
        assert info.value.bound == 6

    def test_comma_search_exhausted(self):
        """One val cannot produce two commas."""
        septimal = Temperament.from_vals([12, 19], 7).canonized()
        with pytest.raises(SearchExhaustedError) as info:
            septimal.comma_factorize('patent', max_divisions=1)
        assert info.value.bound == 1

    def test_unknown_strategy(self, meantone):
        """Only the listed strategies."""
        with pytest.raises(ValueError):
            meantone.val_factorize('random')

    def test_meantone_comma(self, meantone):
        """Corank one gives the syntonic comma."""
        assert meantone.comma_factorize() == [[-4, 4, -1]]

    def test_septimal_meantone_commas(self):
        """Two commas that rebuild septimal meantone."""
        septimal = Temperament.from_vals([12, 19], 7).canonized()
        assert septimal.wedgie() == [1, 4, 10, 4, 13, 12]
        commas = septimal.comma_factorize()
        assert len(commas) == 2
        for comma in commas:
            assert septimal.tempers_out(comma)
        assert Temperament.from_commas(commas, 7).canonized().equals(septimal)
        assert Temperament.from_commas(['81/80', '126/125'], 7).canonized().equals(septimal)


class TestFreeTemperament:
    """Temperaments over a raw JIP."""

    def test_meantone(self, meantone):
        """Same wedgie and tuning as the subgroup version."""
        jip = consts.LOG_PRIMES[:3]
        free = FreeTemperament.from_vals([EDO12, EDO19], jip).canonized()
        assert free.wedgie() == meantone.wedgie()
        assert free.tune([-1, 1, 0]) == pytest.approx(696.239, abs=5e-3)
        assert free.is_recoverable()
        assert FreeTemperament.from_prefix(2, [1, 4], jip).canonized().equals(free)
        assert FreeTemperament.from_commas([[-4, 4, -1]], jip).canonized().equals(free)

    def test_join_meet(self):
        """12 & 19 joins into meantone and meets augmented in 12edo."""
        jip = consts.LOG_PRIMES[:3]
        edo12 = FreeTemperament.from_vals([12], jip)
        edo19 = FreeTemperament.from_vals([19], jip)
        meantone = FreeTemperament.from_vals([12, 19], jip).canonized()
        assert edo12.val_join(edo19).canonized().equals(meantone)
        assert edo12.kernel_meet(edo19).canonized().equals(meantone)

        augmented = FreeTemperament.from_commas([[7, 0, -3]], jip).canonized()
        assert augmented.wedgie() == [3, 0, -7]
        assert meantone.val_meet(augmented).canonized().wedgie() == EDO12
        assert meantone.kernel_join(augmented).canonized().wedgie() == EDO12

    def test_monzos_only(self):
        """Fractions and prime mappings need a subgroup."""
        free = FreeTemperament.from_vals([12], consts.LOG_PRIMES[:3])
        with pytest.raises(ValueError):
            free.tune('3/2')
        with pytest.raises(ValueError):
            free.get_mapping(prime_mapping=True)

    def test_wart_tokens(self):
        """Tokens resolve against the JIP."""
        free = FreeTemperament.from_vals(['17c'], consts.LOG_PRIMES[:3])
        assert free.wedgie() == [17, 27, 40]


class TestErrors:
    """Subgroup errors surface through the engine."""

    def test_wart_outside_subgroup(self):
        """Prime 7 is not in 2.3.5."""
        with pytest.raises(SubgroupError):
            Temperament.from_vals(['12d'], 5)

    def test_comma_outside_subgroup(self):
        """7/4 has no monzo in 2.3.5."""
        with pytest.raises(SubgroupError):
            Temperament.from_commas(['64/63'], 5)
