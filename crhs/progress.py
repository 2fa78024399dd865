from tqdm import tqdm

"""

Fortschrittsanzeige. Eine PPFactory erstellt mit new_progress_bar(total)
Balken mit inc, set_message, finish_and_clear, finish_with_message und
println. TqdmProgress zeichnet mit tqdm, SilentProgress zeigt nichts an.

"""


class TqdmProgressBar:
    def __init__(self, total, position=None):
        self.bar = tqdm(total=total, leave=False, position=position, dynamic_ncols=True)

    def inc(self, n=1):
        self.bar.update(n)

    def set_message(self, msg):
        self.bar.set_description_str(msg)

    def finish_and_clear(self):
        self.bar.close()

    def finish_with_message(self, msg):
        self.bar.close()
        tqdm.write(msg)

    def println(self, msg):
        tqdm.write(msg)


class TqdmProgress:
    def new_progress_bar(self, total):
        return TqdmProgressBar(total)


class SilentProgressBar:
    def inc(self, n=1):
        pass

    def set_message(self, msg):
        pass

    def finish_and_clear(self):
        pass

    def finish_with_message(self, msg):
        pass

    def println(self, msg):
        pass


class SilentProgress:
    def new_progress_bar(self, total):
        return SilentProgressBar()
