# SPDX-License-Identifier: Apache-2.0

import importlib
import pkgutil

import click


class LazyConfig:
    # This is defined here instead of anywhere else because we want to limit
    # the modules that this imports from formguard. Building the configuration
    # is deferred until a command actually needs it, so ``--help`` works
    # without any settings.

    def __init__(self, *args, **kwargs):
        self.__args = args
        self.__kwargs = kwargs
        self.__config = None

    def __getattr__(self, name):
        if self.__config is None:
            from formguard.config import configure

            self.__config = configure(*self.__args, **self.__kwargs)
        return getattr(self.__config, name)


def find_service(config, iface, name=""):
    """
    Look a service up the way a request would, outside of any request.
    """
    import pyramid.scripting

    env = pyramid.scripting.prepare(registry=config.registry)
    try:
        return env["request"].find_service(iface, name=name, context=None)
    finally:
        env["closer"]()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.pass_context
def formguard(ctx):
    ctx.obj = LazyConfig()


# We want to automatically import all of the formguard.cli.* modules so that
# any commands registered in any of them will be discovered.
for _, name, _ in pkgutil.walk_packages(__path__, prefix=__name__ + "."):  # type: ignore # noqa
    importlib.import_module(name)
