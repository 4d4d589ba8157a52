"""Shuffle gate: two paired value-streams that must be multiset-equal.

Left pairs are (input_0, input_1) with input_0 an advice column and input_1 a
fixed column; right pairs are (shuffle_0, shuffle_1), both advice. Each side
is gated by its own selector, so rows where a selector is off contribute the
zero tuple:

    {(s_input * input_0[i], s_input * input_1[i])}  ==  {(s_shuffle * shuffle_0[j], s_shuffle * shuffle_1[j])}

The multiset check itself is performed by the engine's shuffle argument
(protocol/relation.py); this module only declares the two streams.
"""

from dataclasses import dataclass

from constraints.base import Column, ConstraintSystem, Selector

SHUFFLE_NAME = "shuffle"


@dataclass(frozen=True)
class ShuffleConfig:
    """Column and selector handles of the shuffle gate."""
    input_0: Column
    input_1: Column
    shuffle_0: Column
    shuffle_1: Column
    s_input: Selector
    s_shuffle: Selector


class ShuffleChip:
    """Shuffle gate bound to a field type."""

    def __init__(self, config: ShuffleConfig, field: type):
        self.config = config
        self.field = field

    @classmethod
    def construct(cls, config: ShuffleConfig, field: type) -> "ShuffleChip":
        return cls(config, field)

    @staticmethod
    def configure(
        meta: ConstraintSystem,
        input_0: Column,
        input_1: Column,
        shuffle_0: Column,
        shuffle_1: Column,
    ) -> ShuffleConfig:
        """Allocate the two selectors and register the shuffle argument."""
        s_shuffle = meta.complex_selector()
        s_input = meta.complex_selector()

        def pairs(vc):
            q_input = vc.query_selector(s_input)
            q_shuffle = vc.query_selector(s_shuffle)
            return [
                (q_input * vc.query_advice(input_0), q_shuffle * vc.query_advice(shuffle_0)),
                (q_input * vc.query_fixed(input_1), q_shuffle * vc.query_advice(shuffle_1)),
            ]

        meta.shuffle(SHUFFLE_NAME, pairs)
        return ShuffleConfig(
            input_0=input_0,
            input_1=input_1,
            shuffle_0=shuffle_0,
            shuffle_1=shuffle_1,
            s_input=s_input,
            s_shuffle=s_shuffle,
        )
