"""
gridflow: rigid vs fluid planning in a windy grid world.

A painted grid (walls, goal, wind fans) is solved by two interchangeable
planners, a replanning A* search and a value-iteration MDP, and an agent
follows the active planner's policy while the wind it was never told about
pushes it around.
"""

__version__ = "0.1.0"
