"""
Engine errors.

Configuration errors reject a single element or roof plane; batch runners
collect their messages and carry on with the rest of the run. Invalid enum
values and malformed inputs raise ValueError directly.
"""


class ConfigurationError(ValueError):
    """Input references something the project does not define."""


class TemplateNotFoundError(ConfigurationError):
    def __init__(self, instance_id: str, template_id: str):
        self.instance_id = instance_id
        self.template_id = template_id
        super().__init__(f"Template not found for instance {instance_id}: {template_id}")


class GridLabelNotFoundError(ConfigurationError):
    def __init__(self, label: str, axis: str):
        self.label = label
        self.axis = axis
        super().__init__(f"Grid line '{label}' not found on {axis} axis")


class LevelNotFoundError(ConfigurationError):
    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Level not found: {label}")


class GridSystemRequiredError(ConfigurationError):
    def __init__(self):
        super().__init__("Grid system required for grid-rectangle boundary (gridX and gridY must be defined)")


class RoofTypeNotFoundError(ConfigurationError):
    def __init__(self, plane_name: str, roof_type_id: str):
        self.roof_type_id = roof_type_id
        super().__init__(f"Roof plane '{plane_name}': roof type not found ({roof_type_id})")


class SpaceNotFoundError(ConfigurationError):
    def __init__(self, assignment_id: str, space_id: str):
        self.space_id = space_id
        super().__init__(f"Space {space_id} not found for assignment {assignment_id}")


class WallSurfaceNotFoundError(ConfigurationError):
    def __init__(self, assignment_id: str, wall_surface_id: str):
        self.wall_surface_id = wall_surface_id
        super().__init__(f"Wall surface {wall_surface_id} not found for assignment {assignment_id}")


class FinishTypeNotFoundError(ConfigurationError):
    def __init__(self, assignment_id: str, finish_type_id: str):
        self.finish_type_id = finish_type_id
        super().__init__(f"Finish type {finish_type_id} not found for assignment {assignment_id}")
