"""Visualization functions for curvature fields on point clouds."""

import matplotlib.pyplot as plt
import numpy as np


def visualize_curvature(points, values, title="Curvature", label="Curvature",
                        output_file=None, s=1, alpha=1.0, cmap='viridis'):
    """
    Visualize points in 3D colored by a curvature value.

    Args:
        points (array): (N, 3) array of point coordinates
        values (array): (N,) values used for coloring; NaN entries are drawn in grey
        title (str): Plot title
        label (str): Colorbar label
        output_file (str, optional): Path to save visualization
        s (float): Point size
        alpha (float): Point transparency
        cmap (str): Matplotlib colormap
    """
    points = np.asarray(points, dtype=float)
    values = np.asarray(values, dtype=float)
    defined = np.isfinite(values)

    fig = plt.figure(figsize=(10, 10))
    ax = fig.add_subplot(111, projection='3d')

    if np.any(~defined):
        ax.scatter(points[~defined, 0], points[~defined, 1], points[~defined, 2],
                   c='lightgrey', s=s, alpha=alpha, label='Undefined')
        ax.legend()
    scatter = ax.scatter(points[defined, 0], points[defined, 1], points[defined, 2],
                         c=values[defined], cmap=cmap, s=s, alpha=alpha)
    plt.colorbar(scatter, label=label)

    ax.set_title(title)
    ax.set_xlabel('X')
    ax.set_ylabel('Y')
    ax.set_zlabel('Z')

    if output_file:
        plt.savefig(output_file, dpi=300, bbox_inches='tight')
        plt.close(fig)
    else:
        plt.show()


def visualize_estimates(points, estimates, output_file, stride=1, arrow_length=None):
    """
    Visualize a batch of estimates with three subplots:
    1. Mean curvature
    2. Gaussian curvature
    3. Principal directions (k1 in red, k2 in blue)

    Args:
        points (array): (N, 3) array of point coordinates
        estimates (dict): Output of CurvatureFit.estimate
        output_file (str): Path to save visualization
        stride (int): Draw the directions of every Nth point
        arrow_length (float, optional): Length of the direction arrows
            (default: 2% of the bounding box diagonal)
    """
    points = np.asarray(points, dtype=float)
    if arrow_length is None:
        arrow_length = 0.02 * np.linalg.norm(points.max(axis=0) - points.min(axis=0))

    fig = plt.figure(figsize=(20, 6))

    for position, key, title in ((131, 'k_mean', 'Mean Curvature'),
                                 (132, 'k_gaussian', 'Gaussian Curvature')):
        ax = fig.add_subplot(position, projection='3d')
        values = np.asarray(estimates[key], dtype=float)
        defined = np.isfinite(values)
        scatter = ax.scatter(points[defined, 0], points[defined, 1], points[defined, 2],
                             c=values[defined], cmap='viridis', s=5, alpha=0.7)
        plt.colorbar(scatter, ax=ax, label=title)
        ax.set_title(f'{title}\n{int(defined.sum()):,} defined points')
        ax.set_xlabel('X')
        ax.set_ylabel('Y')
        ax.set_zlabel('Z')

    ax3 = fig.add_subplot(133, projection='3d')
    shown = points[::stride]
    for key, color in (('v1', 'red'), ('v2', 'blue')):
        directions = np.asarray(estimates[key], dtype=float)[::stride]
        defined = np.all(np.isfinite(directions), axis=1)
        ax3.quiver(shown[defined, 0], shown[defined, 1], shown[defined, 2],
                   directions[defined, 0], directions[defined, 1], directions[defined, 2],
                   length=arrow_length, color=color, label=key)
    ax3.set_title('Principal Directions')
    ax3.set_xlabel('X')
    ax3.set_ylabel('Y')
    ax3.set_zlabel('Z')
    ax3.legend()

    plt.tight_layout()
    plt.savefig(output_file, dpi=300, bbox_inches='tight')
    plt.close(fig)
