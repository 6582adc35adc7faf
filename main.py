import sys

from rich.pretty import pprint

from flagstore import *

registry = Registry(fancy=True)

test = registry.make(Variable(""), "t")         # text set with -t
yesno = registry.make(Variable(False), "y")     # flag enabled with -y
param = registry.make(Variable(100.0), "p")     # float set with -p
log = registry.make(Variable(), "l", mode="w")  # file opened from -l


if __name__ == '__main__':
    registry.print()
    index = registry.parse()
    registry.print()
    pprint(sys.argv[index:])
    if stream := log.binding.get():
        with stream:
            print(test.current(), yesno.current(), param.current(), sep="\t", file=stream)
