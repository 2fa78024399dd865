from hullsearch.analyse import analyse
from hullsearch.settings import RunConfig

"""

basic execution sample

"""


def basic_execution_sample():
    config = RunConfig(cipher='toy', mode='differential', soft_lim=2 ** 10, rounds=3, out_dir='sample_out', plot=True)
    outcome = analyse(config)

    prob = outcome.best_probability()
    if prob is None:
        print("no hull found")
    else:
        print(f"best hull probability: 2^(-{prob:.4f})")


if __name__ == '__main__':
    basic_execution_sample()
