from rich.pretty import pprint

from argline import *
from argline.demo import build


cli = build()


if __name__ == '__main__':
    pprint(cli)
    invoke(cli, colorful=True)
