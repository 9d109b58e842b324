"""Terminal front-ends for inspecting the lesson catalog."""
