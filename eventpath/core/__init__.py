"""
Core matching engine for EventPath.

Contains the event model (attributes, values, events), single-event
predicates, the history pattern tree with its combinators, and the
interpreter that matches patterns against histories.
"""
