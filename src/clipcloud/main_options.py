"""Click option for the mutually exclusive run modes."""
import click


class MutuallyExclusiveOption(click.Option):
    """Run mode option that refuses to be combined with another mode.

    Args:
        not_required_if: Names of the other run modes.
    """

    def __init__(self, *args, **kwargs):
        self.not_required_if = kwargs.pop("not_required_if", [])
        super().__init__(*args, **kwargs)

    def handle_parse_result(self, ctx, opts, args):
        if self.name in opts:
            given = [other for other in self.not_required_if if other in opts]
            if given:
                modes = ", ".join(f"--{mode}" for mode in [self.name, *given])
                raise click.UsageError(
                    f"Modes {modes} are mutually exclusive; choose one run mode"
                )
        return super().handle_parse_result(ctx, opts, args)
