"""Quadvote - a library for evaluating quadratic voting events.

In a quadratic voting event, every voter gets a budget of credits to spread
among the options; allocating *c* credits to an option gives it *√c* votes.
Quadvote objects provide the means to take such an event from the votes to
a decision:

-   What forms of votes are valid. This is checked by the allocation
    validator from the ``vote`` module, which enforces the option set, the
    credit budget and the voting window.
-   How the allocations become votes. The ``convert`` module applies the
    quadratic transform and aggregates the votes of all voters.
-   How the votes become a decision. This is the task of the ``evaluate``
    subpackage, which contains the evaluators of the two decision
    frameworks: binary selection of options and proportional distribution
    of a resource pool.

The :class:`DecisionFramework` object from the :mod:`system` module pairs an
evaluator type with its configuration, and the :mod:`results` module puts
everything together to compute the results of an event held in an event
store (:mod:`store`).
"""
